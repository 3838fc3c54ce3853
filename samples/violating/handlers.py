import os


def LoadUser(db, user_id):
    query = "SELECT * FROM users WHERE id = " + user_id
    try:
        return db.execute(query)
    except Exception:
        pass


class user_cache:
    """Caches user rows keyed by their id."""


def run(command):
    """Run a shell command for the operator."""
    os.system(command)
    return eval(command)
