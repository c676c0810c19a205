from payportal import db
from payportal.models import Company, Designation

DEFAULT_COMPANIES = [
    'RV Associates',
]

DEFAULT_DESIGNATIONS = [
    'Helper',
    'Operator',
    'Supervisor',
    'Security Guard',
    'Housekeeping',
    'Accountant',
    'Manager',
]

def seed_data():
    """Populates the database with default companies and designations."""
    for name in DEFAULT_COMPANIES:
        if not Company.query.filter_by(name=name).first(): # Only add if it doesn't exist
            db.session.add(Company(name=name))
            print(f'Seeding company: {name}')

    for title in DEFAULT_DESIGNATIONS:
        if not Designation.query.filter_by(title=title).first():
            db.session.add(Designation(title=title))
            print(f'Seeding designation: {title}')

    db.session.commit()
    print('Seeding complete.')
