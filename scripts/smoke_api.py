"""
Smoke checks against a running Training Management API.
Start the server and seed it first:
    training-api seed && training-api serve
Then run this: python scripts/smoke_api.py [base_url]
"""

import json
import sys

import requests

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:3001"

ADMIN = ("admin@training.com", "admin123")
LEARNER = ("learner1@training.com", "learner123")


def banner(title):
    print("\n" + "=" * 50)
    print(f"CHECK: {title}")
    print("=" * 50)


def show(response):
    print(f"Status Code: {response.status_code}")
    print(f"Response: {json.dumps(response.json(), indent=2)[:800]}")


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def check_health():
    banner("Health Check")
    response = requests.get(f"{BASE_URL}/health")
    show(response)
    return response.status_code == 200


def login(email, password):
    banner(f"Login as {email}")
    response = requests.post(
        f"{BASE_URL}/api/auth/login", json={"email": email, "password": password}
    )
    show(response)
    if response.status_code == 200:
        return response.json()["data"]["token"]
    return None


def check_login_invalid():
    banner("Login with Invalid Credentials")
    response = requests.post(
        f"{BASE_URL}/api/auth/login", json={"email": ADMIN[0], "password": "wrong"}
    )
    show(response)
    return response.status_code == 401


def check_without_token():
    banner("Courses Without Token")
    response = requests.get(f"{BASE_URL}/api/courses")
    show(response)
    return response.status_code == 401


def check_me(token):
    banner("Current User")
    response = requests.get(f"{BASE_URL}/api/auth/me", headers=auth(token))
    show(response)
    return response.status_code == 200


def check_courses(token):
    banner("List Courses")
    response = requests.get(f"{BASE_URL}/api/courses", headers=auth(token))
    show(response)
    return response.status_code == 200


def check_learner_cannot_create_course(token):
    banner("Learner Creates Course")
    response = requests.post(
        f"{BASE_URL}/api/courses",
        headers=auth(token),
        json={"title": "X", "description": "X", "duration": 1,
              "category": "X", "courseType": "in-class"},
    )
    show(response)
    return response.status_code == 403


def check_learner_schedules(token):
    banner("Learner Schedules (own enrollments only)")
    response = requests.get(f"{BASE_URL}/api/schedules", headers=auth(token))
    show(response)
    return response.status_code == 200


def main():
    print("=" * 50)
    print("Training Management API Smoke Checks")
    print("=" * 50)
    print(f"Base URL: {BASE_URL}")

    results = {}

    try:
        results["Health Check"] = check_health()
        results["Login Invalid"] = check_login_invalid()
        results["Without Token"] = check_without_token()

        admin_token = login(*ADMIN)
        results["Admin Login"] = admin_token is not None
        if admin_token:
            results["Current User"] = check_me(admin_token)
            results["List Courses"] = check_courses(admin_token)

        learner_token = login(*LEARNER)
        results["Learner Login"] = learner_token is not None
        if learner_token:
            results["Learner Create Course"] = check_learner_cannot_create_course(learner_token)
            results["Learner Schedules"] = check_learner_schedules(learner_token)

    except requests.RequestException as e:
        print(f"\n\nERROR: {e}")

    print("\n" + "=" * 50)
    print("SUMMARY")
    print("=" * 50)
    passed = sum(1 for v in results.values() if v)
    for name, result in results.items():
        status = "✓ PASS" if result else "✗ FAIL"
        print(f"{status}: {name}")
    print(f"\nTotal: {passed}/{len(results)} checks passed")
    print("=" * 50)


if __name__ == "__main__":
    main()
