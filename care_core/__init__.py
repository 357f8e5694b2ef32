# =============================================================================
# care_core/__init__.py
# HealthCare+ Data Layer
# =============================================================================

__version__ = "0.1.0"
