"""
gcontact_gravatar.sync - Avatar resolution, update policy and the sync run.
"""
