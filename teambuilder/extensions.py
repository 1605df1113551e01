"""Flask extensions for the application."""
from flask_mail import Mail
from flask_wtf.csrf import CSRFProtect

from .mirror import MirrorRegistry

mail = Mail()
csrf = CSRFProtect()
mirrors = MirrorRegistry()
