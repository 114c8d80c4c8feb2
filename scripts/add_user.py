"""
최초 관리자 계정 생성용 스크립트

사용 예:
    python -m scripts.add_user admin@school.edu "Admin" 'P@ssw0rd' --role ADMIN
"""
import argparse
from sqlalchemy.orm import Session
from database.db import SessionLocal, init_db
from models.users import ROLES, ROLE_ADMIN
from services import auth_service

def main():
    parser = argparse.ArgumentParser(description="교직원 계정 생성")
    parser.add_argument("email")
    parser.add_argument("name")
    parser.add_argument("password")
    parser.add_argument("--role", default=ROLE_ADMIN, choices=ROLES)
    parser.add_argument("--department", default=None)
    args = parser.parse_args()

    init_db()
    db: Session = SessionLocal()
    try:
        user = auth_service.create_user(
            db, args.email, args.name, args.password, args.role, department=args.department
        )
    finally:
        db.close()
    print(f"✅ 계정 생성 완료: {user.email} ({user.role})")

if __name__ == "__main__":
    main()
