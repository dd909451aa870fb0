"""MAi Drive client: phone sign-in, session and language handling"""

__version__ = "1.0.0"
