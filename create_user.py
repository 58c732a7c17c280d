from app import create_app
from models import ALLOWED_ROLES

app = create_app()


def create_user(username, password, role):
    store = app.extensions["store"]
    with app.app_context():
        # usernames are unique
        existing_user = store.get_user_by_username(username)
        if existing_user:
            print(f"⚠️  User '{username}' already exists with role '{existing_user.role}'.")
            return

        user = store.create_user(username, password, role)
        print(f"✅ Created user: {user.username} (id: {user.id}, role: {role})")


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Create a new user.')
    parser.add_argument('username', help='Username')
    parser.add_argument('password', help='Password')
    parser.add_argument('role', choices=ALLOWED_ROLES, help='User role')

    args = parser.parse_args()
    create_user(args.username, args.password, args.role)
