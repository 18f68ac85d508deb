"""Cohort filters for the community feed."""

from enum import Enum
from typing import Mapping

from atelier.engines.submissions.ordering import SubmissionFilter
from atelier.kernel.models.profile import UserRole
from atelier.pedagogy.curriculum import ClassType
from atelier.schemas.records import ProfileRecord, SubmissionRecord


class Cohort(str, Enum):
    """Feed tabs, one per class."""

    MASTER = "MASTER"
    VIZ = "VIZ"


COHORT_CLASS = {
    Cohort.MASTER: ClassType.MASTER_CLASS,
    Cohort.VIZ: ClassType.VIZ_CLASS,
}


def cohort_filter(profiles: Mapping[str, ProfileRecord], cohort: Cohort) -> SubmissionFilter:
    """Keep submissions whose author is a student of the cohort's class."""
    class_type = COHORT_CLASS[Cohort(cohort)]

    def predicate(submission: SubmissionRecord) -> bool:
        author = profiles.get(submission.student_id)
        if author is None or author.role != UserRole.STUDENT:
            return False
        return author.class_type == class_type

    return predicate


def default_cohort(profile: ProfileRecord) -> Cohort:
    """Students land on their own class's feed."""
    if profile.class_type == ClassType.VIZ_CLASS:
        return Cohort.VIZ
    return Cohort.MASTER
