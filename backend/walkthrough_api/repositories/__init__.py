from walkthrough_api.repositories import (
    analytics_repo,
    lesson_plan_repo,
    location_repo,
    presence_repo,
    review_repo,
    teacher_repo,
    user_repo,
    walkthrough_repo,
)

__all__ = [
    "analytics_repo",
    "lesson_plan_repo",
    "location_repo",
    "presence_repo",
    "review_repo",
    "teacher_repo",
    "user_repo",
    "walkthrough_repo",
]
