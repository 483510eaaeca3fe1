# Fleet Maintenance Tracker — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.car import Car                                # noqa
from app.models.mileage_record import MileageRecord           # noqa
from app.models.maintenance_rule import MaintenanceRule       # noqa
from app.models.maintenance_record import MaintenanceRecord   # noqa
from app.models.notification import Notification              # noqa
