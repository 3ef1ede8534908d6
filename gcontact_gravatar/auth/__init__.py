"""
gcontact_gravatar.auth - Google account authentication module.
"""
