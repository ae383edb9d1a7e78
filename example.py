"""Example usage of the keyed_tables library."""

from keyed_tables import Database, connect
from keyed_tables.backend import list_keys

# connect("redis://localhost:6379/0") talks to a real server instead
backend = connect()
db = Database(backend)

db.execute("""
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTO_INCREMENT,
    name VARCHAR(255) NOT NULL,
    email VARCHAR(255),
    active BOOLEAN
)
""")

insert = db.prepare("INSERT INTO users (name, email, active) VALUES (?, ?, ?)")
people = [
    ("Alice", "alice@example.com", True),
    ("Bob", None, False),
    ("Charlie", "charlie@example.com", True),
]
print("Inserting users...")
for name, email, active in people:
    insert.bind(1, name)
    insert.bind(2, email)
    insert.bind(3, active)
    insert.update()
    print(f"  Created {name} with id {db.last_insert_id}")

print("\nActive users:")
with db.query("SELECT id, name, email FROM users WHERE active = TRUE") as cursor:
    while cursor.next():
        print(f"  [{cursor.get('id')}] {cursor.get('name')} <{cursor.get('email')}>")

print("\nUsers without an email:")
for row in db.query("SELECT name FROM users WHERE email = NULL"):
    print(f"  {row['name']}")

db.update("UPDATE users SET active = FALSE WHERE name = 'Alice'")
count = db.query("SELECT COUNT(*) FROM users WHERE active = TRUE")
count.next()
print(f"\nStill active: {count.get('count')}")

print("\nBackend keys:")
for key in list_keys(backend):
    print(f"  {key}")

print("\n" + "=" * 60)
print("Try the interactive shell:")
print("  ksql")
print("  ksql -c \"CREATE TABLE t (id INTEGER PRIMARY KEY AUTO_INCREMENT, name TEXT); INSERT INTO t (name) VALUES ('Ann'); SELECT * FROM t\"")
