AUTHORS = [{"name": "Ada"}, {"name": "Grace"}]


def upgrade(cnx):
    for author in AUTHORS:
        cnx.execute("INSERT INTO authors (name) VALUES (#{author.name})", author=author)
