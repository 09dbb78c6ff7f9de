def upgrade(cnx):
    cnx.execute("ALTER TABLE !{table} ADD COLUMN title VARCHAR(256)", table="posts")
