from typing import List

from portal.core.config import settings
from portal.db.client import QueryClient, eq, in_
from portal.schemas.attendance import RosterEntry


def get_class_roster(client: QueryClient, class_id: str) -> List[RosterEntry]:
    """Students enrolled in a class, with their display names."""
    enrollments = client.query(settings.CLASS_STUDENTS_TABLE, [eq("class_id", class_id)])

    student_ids = [str(row["student_id"]) for row in enrollments]

    if not student_ids:
        return []

    profiles = client.query(settings.PROFILES_TABLE, [in_("id", student_ids)])
    names = {str(row["id"]): row.get("full_name") for row in profiles}

    return [
        RosterEntry(student_id=student_id, full_name=names.get(student_id))
        for student_id in student_ids
    ]
