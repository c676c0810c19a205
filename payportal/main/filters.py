# ==============================================================================
# payportal/main/filters.py
# ------------------------------------------------------------------------------
# Defines custom Jinja2 template filters for the application.
# ==============================================================================

from payportal.main import bp

@bp.app_template_filter('currency')
def currency_filter(s):
    """
    Formats an amount with thousands separators and two decimals.
    Example: 1234567.5 -> "1,234,567.50"
    """
    try:
        return "{:,.2f}".format(float(s))
    except (ValueError, TypeError):
        return s

@bp.app_template_filter('whole')
def whole_number_filter(s):
    """Rounds to an integer with thousands separators: 1234.6 -> "1,235"."""
    try:
        return "{:,}".format(int(round(float(s))))
    except (ValueError, TypeError):
        return s
