def upgrade(cnx):
    cnx.execute("CREATE TABLE authors (id INTEGER PRIMARY KEY, name VARCHAR(128) NOT NULL)")
