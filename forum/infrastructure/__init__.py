"""Infrastructure — imperative shell: logging, database, sessions, captcha, listener.

Invariants:
    - Every module here may do IO; core/ never imports from here
"""
