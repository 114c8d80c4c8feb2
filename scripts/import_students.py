import csv
from sqlalchemy.orm import Session
from database.db import SessionLocal, init_db
from models.students import Student as StudentModel
from services import course_service
from utils.exceptions import ConflictError

CSV_PATH = "data/students.csv"  # ✅ 파일 경로 (student_number, first_name, last_name, middle_initial, course_slug)

def migrate_students():
    init_db()
    db: Session = SessionLocal()
    created = enrolled = 0

    try:
        with open(CSV_PATH, newline="", encoding="utf-8-sig") as csvfile:
            reader = csv.DictReader(csvfile)
            for row in reader:
                number = row["student_number"].strip()
                student = db.query(StudentModel).filter(StudentModel.student_number == number).first()
                if student is None:
                    student = course_service.create_student(db, {
                        "student_number": number,                            # 학번
                        "first_name": row["first_name"].strip(),             # 이름
                        "last_name": row["last_name"].strip(),               # 성
                        "middle_initial": (row.get("middle_initial") or "").strip() or None,
                    })
                    created += 1

                # 강좌 slug 가 있으면 수강 등록 (이미 등록이면 건너뜀)
                slug = (row.get("course_slug") or "").strip()
                if slug:
                    course = course_service.get_course_by_slug(db, slug)
                    try:
                        course_service.enroll(db, course, student.id)
                        enrolled += 1
                    except ConflictError:
                        pass
    finally:
        db.close()
    print(f"✅ 학생 CSV → DB 마이그레이션 완료 (생성 {created}, 수강 등록 {enrolled})")

if __name__ == "__main__":
    migrate_students()
