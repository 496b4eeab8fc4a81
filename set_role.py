"""Grant the `doctor` role claim to a Firebase user.

Usage: python set_role.py <uid> [role]
"""
import sys

import firebase_admin
from firebase_admin import credentials, auth

from doctor_portal.core.config import settings


def set_role(uid: str, role: str = "doctor"):
    if not firebase_admin._apps:
        cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS)
        firebase_admin.initialize_app(cred)

    auth.set_custom_user_claims(uid, {"role": role})


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    uid = sys.argv[1]
    role = sys.argv[2] if len(sys.argv) > 2 else "doctor"
    set_role(uid, role)

    print(f"✅ Role claim '{role}' set successfully for UID: {uid}")
    print("✅ Now log out and log in again OR refresh token using getIdToken(true)")
