# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# (base distante) et LocalBase.metadata (cache SQLite) avant create_all().
# school doit précéder les autres : les FK pointent vers schools.id.

from rolecaller.models.school import School  # noqa: F401
from rolecaller.models.school_class import SchoolClass  # noqa: F401
from rolecaller.models.student import Student  # noqa: F401
from rolecaller.models.attendance import Attendance  # noqa: F401
from rolecaller.models.local import (  # noqa: F401
    AttendanceLocal,
    ClassLocal,
    SchoolLocal,
    StudentLocal,
    SyncMeta,
    TeacherLocal,
)
