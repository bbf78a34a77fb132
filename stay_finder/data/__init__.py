"""Data loading and validation utilities."""
from .loader import init_db, get_clean_connection, get_data_dir, load_tables
from .validator import CleaningConfig, DataCleaner, Rule, check_data_quality
