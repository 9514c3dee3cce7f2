"""
Derived health report values and report identifiers.
"""
import secrets
import string
import time
from typing import Optional

REPORT_ID_ALPHABET = string.digits + string.ascii_lowercase
REPORT_ID_SUFFIX_LENGTH = 9

def generate_report_id() -> str:
    """
    Generate a public report identifier: ``HR-<epoch ms>-<9 base36 chars>``.
    """
    suffix = "".join(secrets.choice(REPORT_ID_ALPHABET) for _ in range(REPORT_ID_SUFFIX_LENGTH))
    return f"HR-{int(time.time() * 1000)}-{suffix}"

def calculate_bmi(height_cm: Optional[float], weight_kg: Optional[float]) -> Optional[float]:
    """
    Body mass index rounded to one decimal.
    
    Args:
        height_cm: Height in centimetres
        weight_kg: Weight in kilograms
        
    Returns:
        BMI, or None unless both values are present and non-zero
    """
    if not height_cm or not weight_kg:
        return None
    height_m = height_cm / 100
    return round(weight_kg / (height_m * height_m), 1)

def _format_reading(value: float) -> str:
    return f"{value:g}"

def format_blood_pressure(systolic: Optional[float], diastolic: Optional[float]) -> Optional[str]:
    """Blood pressure as ``systolic/diastolic``, or None if either reading is missing."""
    if systolic is None or diastolic is None:
        return None
    return f"{_format_reading(systolic)}/{_format_reading(diastolic)}"
