import csv
from collections import defaultdict
from sqlalchemy.orm import Session
from database.db import SessionLocal, init_db
from models.students import Student as StudentModel
from services import attendance_service, course_service
from utils.exceptions import NotFoundError

CSV_PATH = "data/attendance.csv"  # ✅ 파일 경로 (course_slug, student_number, date, status)

def migrate_attendance():
    init_db()
    db: Session = SessionLocal()

    # (강좌, 날짜) 단위로 묶어서 일괄 upsert → 같은 파일을 다시 넣어도 행이 늘지 않음
    sessions = defaultdict(list)
    try:
        with open(CSV_PATH, newline="", encoding="utf-8-sig") as csvfile:
            reader = csv.DictReader(csvfile)
            for row in reader:
                number = row["student_number"].strip()
                student = db.query(StudentModel).filter(StudentModel.student_number == number).first()
                if student is None:
                    raise NotFoundError(f"Student {number} not found")
                sessions[(row["course_slug"].strip(), row["date"].strip())].append({
                    "student_id": student.id,
                    "status": row["status"].strip(),                 # PRESENT / LATE / ABSENT / EXCUSED
                })

        total = 0
        for (slug, day), entries in sessions.items():
            course = course_service.get_course_by_slug(db, slug)
            total += len(attendance_service.record_attendance_batch(db, course, day, entries))
    finally:
        db.close()
    print(f"✅ 출결 CSV → DB 마이그레이션 완료 ({len(sessions)}개 수업일, {total}건)")

if __name__ == "__main__":
    migrate_attendance()
