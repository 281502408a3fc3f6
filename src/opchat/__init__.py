"""opchat - AI-powered conversational assistant for opBNB."""

__app_name__ = "opchat"
__version__ = "0.3.0"
