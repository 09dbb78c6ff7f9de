# The schema already includes the authors table added by migration 1
VERSION = 1


def define(cnx):
    cnx.execute(
        """
        CREATE TABLE authors (
            id INTEGER PRIMARY KEY,
            name VARCHAR(128) NOT NULL
        )
        """
    )
    cnx.execute(
        """
        CREATE TABLE posts (
            id INTEGER PRIMARY KEY,
            author_id INTEGER NOT NULL REFERENCES authors (id),
            body TEXT
        )
        """
    )
