from app.core.sql_parser import parse_create_table_statements

BLOG_SQL = """
CREATE TABLE Authors (
  id INT PRIMARY KEY,
  name VARCHAR(255) NOT NULL
);

CREATE TABLE Posts (
  id INT PRIMARY KEY,
  author_id INT,
  title VARCHAR(255),
  price DECIMAL(10, 2),
  FOREIGN KEY (author_id) REFERENCES Authors(id)
);
"""


def _fields(table):
    return {f.name: f for f in table.fields}


def test_parses_tables_fields_and_keys():
    schema = parse_create_table_statements(BLOG_SQL)

    assert schema.type == "sql"
    assert schema.code == BLOG_SQL
    assert [t.name for t in schema.tables] == ["Authors", "Posts"]

    authors = _fields(schema.tables[0])
    assert list(authors) == ["id", "name"]
    assert authors["id"].is_primary_key
    assert authors["id"].type == "INT"
    assert authors["name"].type == "VARCHAR(255) NOT NULL"

    posts = _fields(schema.tables[1])
    assert list(posts) == ["id", "author_id", "title", "price"]
    assert posts["price"].type == "DECIMAL(10, 2)"
    assert posts["author_id"].is_foreign_key
    assert posts["author_id"].references.table == "Authors"
    assert posts["author_id"].references.field == "id"
    assert not posts["title"].is_foreign_key
    assert posts["title"].references is None


def test_table_level_composite_key_and_quoted_identifiers():
    sql = """
    CREATE TABLE IF NOT EXISTS `post_tags` (
      `post_id` INT,
      "tag_id" INT,
      PRIMARY KEY (`post_id`, "tag_id"),
      CONSTRAINT fk_post FOREIGN KEY (`post_id`) REFERENCES `posts`(`id`)
    );
    """
    (table,) = parse_create_table_statements(sql).tables
    fields = _fields(table)

    assert table.name == "post_tags"
    assert list(fields) == ["post_id", "tag_id"]
    assert fields["post_id"].is_primary_key and fields["tag_id"].is_primary_key
    assert fields["post_id"].references.table == "posts"
    assert fields["post_id"].references.field == "id"
    assert not fields["tag_id"].is_foreign_key


def test_inline_references():
    sql = "CREATE TABLE comments (id SERIAL PRIMARY KEY, post_id INT NOT NULL REFERENCES posts(id));"
    fields = _fields(parse_create_table_statements(sql).tables[0])

    assert fields["id"].type == "SERIAL"
    assert fields["post_id"].type == "INT NOT NULL"
    assert fields["post_id"].is_foreign_key
    assert fields["post_id"].references.table == "posts"


def test_empty_table_is_kept():
    sql = "CREATE TABLE Empty ();\nCREATE TABLE Next (id INT);"
    schema = parse_create_table_statements(sql)

    assert [t.name for t in schema.tables] == ["Empty", "Next"]
    assert schema.tables[0].fields == []


def test_trailing_table_options_are_ignored():
    sql = "CREATE TABLE orders (id INT PRIMARY KEY, total DECIMAL(8,2)) ENGINE=InnoDB;"
    fields = _fields(parse_create_table_statements(sql).tables[0])

    assert list(fields) == ["id", "total"]
    assert fields["total"].type == "DECIMAL(8,2)"


def test_duplicate_column_keeps_first():
    fields = parse_create_table_statements("CREATE TABLE a (x INT, x TEXT);").tables[0].fields

    assert [(f.name, f.type) for f in fields] == [("x", "INT")]


def test_non_ddl_text_is_skipped():
    schema = parse_create_table_statements("SELECT * FROM users; INSERT INTO t VALUES (1);")

    assert schema.tables == []
    assert schema.code.startswith("SELECT")


def test_parsing_own_code_is_idempotent():
    first = parse_create_table_statements(BLOG_SQL)
    second = parse_create_table_statements(first.code)

    assert [t.name for t in second.tables] == [t.name for t in first.tables]
    for a, b in zip(first.tables, second.tables):
        assert [(f.name, f.is_primary_key, f.is_foreign_key) for f in a.fields] == [
            (f.name, f.is_primary_key, f.is_foreign_key) for f in b.fields
        ]


def test_duplicate_table_keeps_first():
    schema = parse_create_table_statements("CREATE TABLE a (id INT); CREATE TABLE a (x INT);")

    assert [t.name for t in schema.tables] == ["a"]
    assert [f.name for f in schema.tables[0].fields] == ["id"]
