"""
config.py
Runtime settings. Every value can be overridden with an environment variable.
"""

from __future__ import annotations

import os
from pathlib import Path

DB_FILE = Path(os.environ.get("GYM_DB_FILE", str(Path(__file__).with_name("gym.db"))))

# Members with more days than this since their last visit are alerted
INACTIVITY_THRESHOLD_DAYS = int(os.environ.get("GYM_INACTIVITY_DAYS", "6"))

LOG_LEVEL = os.environ.get("GYM_LOG_LEVEL", "INFO").upper()

# Staff affiliation; exempt from attendance compliance
TRAINER_AFFILIATION = "Entrenador(a)"

AFFILIATION_TYPES = ["Mensual", "Clase suelta", "Convenio", TRAINER_AFFILIATION]

PAYMENT_METHODS = ["Efectivo", "Transferencia", "Nequi", "Tarjeta"]

# Amounts above this are accepted but flagged to the operator
MAX_REASONABLE_AMOUNT = 100000
