"""
gcontact_gravatar.api - Google Contacts feed client module.
"""
