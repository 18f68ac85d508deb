"""
API v1 routes.
"""

from fastapi import APIRouter

from atelier.api.v1 import classes, feed, profiles, submissions

router = APIRouter()

router.include_router(profiles.router, tags=["Profiles"])
router.include_router(classes.router, tags=["Classes"])
router.include_router(submissions.router, tags=["Submissions"])
router.include_router(feed.router, tags=["Feed"])
