# ==============================================================================
# run.py
# ------------------------------------------------------------------------------
# The main entry point to launch the Flask application.
# ==============================================================================

from payportal import create_app, db
from payportal.models import Company, Designation, Document, Payslip, PayrollData, PayrollUpload

# Create the Flask application instance using the factory function
app = create_app()

@app.shell_context_processor
def make_shell_context():
    """Provides a shell context for the `flask shell` command."""
    return {
        'db': db,
        'Company': Company,
        'Designation': Designation,
        'Document': Document,
        'Payslip': Payslip,
        'PayrollData': PayrollData,
        'PayrollUpload': PayrollUpload,
    }

if __name__ == '__main__':
    app.run(debug=True)
