"""
Preventive maintenance rule catalog.

The catalog is global and rarely changes. ensure_maintenance_rules() seeds the
default rules once before the API serves traffic; load_rules() returns the
catalog so callers can hand it to MaintenancePlanner explicitly.
"""

from sqlalchemy.orm import Session
from app.models.maintenance_rule import MaintenanceRule
from app.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_RULES = [
    {"name": "VIDANGE", "description": "Remplacement régulier de l'huile moteur", "mileage_interval": 10000},
    {"name": "FILTRE HABITACLE", "description": "Remplacement du filtre à air de l'habitacle", "mileage_interval": 20000},
    {"name": "FILTRE GASOIL", "description": "Remplacement du filtre à gasoil", "mileage_interval": 30000},
    {"name": "PATIN FREIN", "description": "Vérification et remplacement des plaquettes de frein", "mileage_interval": 30000},
    {"name": "LIQ FREIN", "description": "Vidange et remplacement du liquide de frein", "mileage_interval": 40000},
    {"name": "LIQ REFROIDISSEMENT", "description": "Remplacement du liquide de refroidissement", "mileage_interval": 50000},
    {"name": "POMPE A EAU", "description": "Vérification ou remplacement de la pompe à eau", "mileage_interval": 60000},
    {"name": "DISQUE FREIN", "description": "Contrôle et remplacement des disques de frein", "mileage_interval": 70000},
    {"name": "AMORTISSEUR", "description": "Contrôle et remplacement des amortisseurs", "mileage_interval": 80000},
    {"name": "ROTULE", "description": "Vérification des rotules de direction", "mileage_interval": 80000},
    {"name": "CHAINE", "description": "Contrôle et remplacement de la chaîne de distribution", "mileage_interval": 100000},
    {"name": "COURROIE", "description": "Contrôle et remplacement de la courroie de distribution", "mileage_interval": 100000},
    {"name": "MACHOIR DE FREIN A TOMBOUR", "description": "Remplacement des mâchoires de frein à tambour", "mileage_interval": 120000},
    {"name": "CARDANS + ROULEMENTS", "description": "Vérification des cardans et roulements de roue", "mileage_interval": 120000},
    {"name": "EMBRAYAGE", "description": "Contrôle et remplacement du kit d'embrayage", "mileage_interval": 150000},
]


def ensure_maintenance_rules(db: Session, rules: list[dict] = None) -> int:
    """Insert any missing catalog rule. Existing rules are left untouched. Returns the number created."""
    rules = DEFAULT_RULES if rules is None else rules
    existing = {name for (name,) in db.query(MaintenanceRule.name).all()}
    created = 0
    for rule in rules:
        if rule["name"] in existing:
            continue
        db.add(MaintenanceRule(**rule))
        created += 1
    db.commit()
    if created:
        logger.info(f"[RULES] Seeded {created} maintenance rules")
    else:
        logger.info("[RULES] Maintenance rules verified")
    return created


def load_rules(db: Session) -> list[MaintenanceRule]:
    return db.query(MaintenanceRule).order_by(MaintenanceRule.id).all()
