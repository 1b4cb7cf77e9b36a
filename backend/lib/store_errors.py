class StoreDataError(Exception):
    """
    A stored reading could not be read back (bad JSON, invalid record).

    Unlike a ValueError from user input this is a server-side problem,
    the Flask app answers it with a 500 JSON error.
    """
