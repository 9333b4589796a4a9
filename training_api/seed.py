"""
Seed a fresh database with default accounts, sample courses and schedules.
"""

import json
import random
import uuid

from faker import Faker

from training_api.database import execute, fetch_value, now, run_atomic
from training_api.users import insert_user

DEFAULT_ACCOUNTS = [
    # (email, password, name, role)
    ("admin@training.com", "admin123", "Administrator", "admin"),
    ("trainer1@training.com", "trainer123", "John Smith", "trainer"),
    ("trainer2@training.com", "trainer123", "Sarah Johnson", "trainer"),
]

SAMPLE_COURSES = [
    # (title, description, duration, category, course_type, zoom_link)
    ("Introduction to Project Management",
     "Learn the fundamentals of project management including planning, execution, and monitoring.",
     16, "Management", "in-class", None),
    ("Advanced Data Analytics",
     "Master data analysis techniques using Python, SQL, and visualization tools.",
     24, "Technology", "virtual", "https://zoom.us/j/1234567890"),
    ("Leadership and Communication Skills",
     "Develop essential leadership qualities and effective communication strategies.",
     12, "Soft Skills", "in-class", None),
    ("Cybersecurity Fundamentals",
     "Understand the basics of cybersecurity, threats, and protection mechanisms.",
     20, "Technology", "elearning", None),
]

SAMPLE_MODULES = [
    # (title, content_type, duration)
    ("Threat Landscape Overview", "video", 30),
    ("Security Policies Handbook", "document", 45),
    ("Knowledge Check", "quiz", 15),
]

SAMPLE_PROFILE_FIELDS = [
    # (name, label, field_type, options, is_required, visible_to)
    ("department", "Department", "text", None, 0, ["admin", "trainer"]),
    ("employee_id", "Employee ID", "text", None, 1, ["admin", "trainer", "learner"]),
    ("job_title", "Job Title", "select",
     ["Manager", "Developer", "Analyst", "Coordinator", "Specialist"], 0, ["admin", "trainer"]),
    ("skills", "Skills", "multiselect",
     ["Project Management", "Data Analysis", "Programming", "Communication", "Leadership"],
     0, ["admin", "trainer", "learner"]),
    ("join_date", "Join Date", "date", None, 0, ["admin"]),
]


def seed(engine, learner_count: int = 4, faker_seed: int = 42) -> bool:
    """Populate an empty database. Returns False when users already exist."""
    existing = fetch_value(engine, "SELECT COUNT(*) FROM users")
    if existing:
        print("[seed] Database already seeded. Skipping...")
        return False

    fake = Faker()
    Faker.seed(faker_seed)
    rng = random.Random(faker_seed)

    ids = {}
    for email, password, name, role in DEFAULT_ACCOUNTS:
        ids[email] = insert_user(engine, email, password, name, role)
    admin_id = ids["admin@training.com"]
    trainer_ids = [ids["trainer1@training.com"], ids["trainer2@training.com"]]

    learner_ids = []
    for i in range(1, learner_count + 1):
        learner_ids.append(
            insert_user(engine, f"learner{i}@training.com", "learner123", fake.name(), "learner")
        )
    print(f"[seed] Inserted {len(ids) + len(learner_ids)} users")

    course_ids = []
    for title, description, duration, category, course_type, zoom_link in SAMPLE_COURSES:
        course_id = str(uuid.uuid4())
        stamp = now()
        execute(engine, """
            INSERT INTO courses (id, title, description, duration, category, course_type, status,
                                 zoom_link, created_by, created_at, updated_at)
            VALUES (:id, :title, :description, :duration, :category, :course_type, :status,
                    :zoom_link, :created_by, :created_at, :updated_at)
        """, {
            "id": course_id, "title": title, "description": description, "duration": duration,
            "category": category, "course_type": course_type,
            "status": "published" if course_type == "elearning" else None,
            "zoom_link": zoom_link, "created_by": admin_id,
            "created_at": stamp, "updated_at": stamp,
        })
        course_ids.append((course_id, course_type))

        if course_type == "elearning":
            run_atomic(engine, [
                ("""
                    INSERT INTO course_modules (id, course_id, title, content_type, duration,
                                                sort_order, is_required, created_at)
                    VALUES (:id, :course_id, :title, :content_type, :duration, :sort_order, 1, :created_at)
                """, {
                    "id": str(uuid.uuid4()), "course_id": course_id, "title": m_title,
                    "content_type": content_type, "duration": m_duration,
                    "sort_order": position, "created_at": stamp,
                })
                for position, (m_title, content_type, m_duration) in enumerate(SAMPLE_MODULES)
            ])
    print(f"[seed] Inserted {len(course_ids)} courses")

    scheduled = [(cid, ctype) for cid, ctype in course_ids if ctype != "elearning"]
    for course_id, course_type in scheduled:
        schedule_id = str(uuid.uuid4())
        start = fake.date_between(start_date="+7d", end_date="+60d")
        execute(engine, """
            INSERT INTO schedules (id, course_id, title, schedule_type, start_date, end_date,
                                   start_time, end_time, trainer_id, location, max_learners, status,
                                   session_mode, created_at)
            VALUES (:id, :course_id, :title, 'single', :start_date, :end_date, '09:00', '17:00',
                    :trainer_id, :location, 20, 'upcoming', :session_mode, :created_at)
        """, {
            "id": schedule_id, "course_id": course_id,
            "title": f"Session {start.isoformat()}",
            "start_date": start.isoformat(), "end_date": start.isoformat(),
            "trainer_id": rng.choice(trainer_ids),
            "location": None if course_type == "virtual" else fake.city(),
            "session_mode": "virtual" if course_type == "virtual" else "face-to-face",
            "created_at": now(),
        })
        for learner_id in rng.sample(learner_ids, k=min(2, len(learner_ids))):
            execute(engine, """
                INSERT INTO enrollments (id, schedule_id, learner_id, enrolled_at, status)
                VALUES (:id, :schedule_id, :learner_id, :enrolled_at, 'active')
            """, {
                "id": str(uuid.uuid4()), "schedule_id": schedule_id,
                "learner_id": learner_id, "enrolled_at": now(),
            })
    print(f"[seed] Inserted {len(scheduled)} schedules")

    run_atomic(engine, [
        ("""
            INSERT INTO custom_profile_fields (id, name, label, field_type, options, is_required,
                                               sort_order, visible_to, created_at)
            VALUES (:id, :name, :label, :field_type, :options, :is_required,
                    :sort_order, :visible_to, :created_at)
        """, {
            "id": str(uuid.uuid4()), "name": name, "label": label, "field_type": field_type,
            "options": json.dumps(options) if options else None,
            "is_required": is_required, "sort_order": position,
            "visible_to": json.dumps(visible_to), "created_at": now(),
        })
        for position, (name, label, field_type, options, is_required, visible_to)
        in enumerate(SAMPLE_PROFILE_FIELDS)
    ])
    print(f"[seed] Inserted {len(SAMPLE_PROFILE_FIELDS)} profile fields")

    return True
