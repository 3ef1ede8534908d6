"""
gcontact_gravatar - Gravatar photos for Google Contacts

Fills in contact photos in a Google Contacts account from the Gravatar
images registered for each contact's email addresses.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
