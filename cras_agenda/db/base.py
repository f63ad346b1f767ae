# Garante o registro de TODAS as models no mesmo registry
from cras_agenda.db.base_class import Base  # noqa
from cras_agenda.models.appointment import Appointment  # noqa
from cras_agenda.models.blocked_slot import BlockedSlot  # noqa
from cras_agenda.models.cras import Cras  # noqa
from cras_agenda.models.log import Log  # noqa

# IMPORTS com efeito colateral (não remova)
from cras_agenda.models.user import User  # noqa
