"""Helpers compartidos por los servicios SQL y NoSQL."""

import random
from datetime import datetime


def generate_registration_number(now=None):
    """
    Genera un número de inscripción único: REG-<año>-<epoch ms>-<3 dígitos>.

    Ejemplo:
        >>> generate_registration_number(datetime(2025, 3, 1))
        'REG-2025-1740787200000-042'
    """
    now = now or datetime.now()
    millis = int(now.timestamp() * 1000)
    return f"REG-{now.year}-{millis}-{random.randint(0, 999):03d}"
