# =============================================================================
# parlor_core/__init__.py
# LoveDone Parlor: offline-capable record store and Streamlit screens
# =============================================================================

__version__ = "0.1.0"
