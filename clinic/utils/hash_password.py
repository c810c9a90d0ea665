# module clinic.utils.hash_password
# Usage: python -m clinic.utils.hash_password  (valeur à placer dans ADMIN_PASS_HASH)
from getpass import getpass

from clinic.utils.security import hash_password

if __name__ == "__main__":
    secret = getpass("Admin password: ")
    print(f"ADMIN_PASS_HASH={hash_password(secret)}")
