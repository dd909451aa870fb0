"""Sign-in workflow, session state and token storage"""
