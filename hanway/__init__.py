"""
Hanway - Chinese vocabulary trainer.

Packages:
    hanway.fsrs       FSRS-6 scheduling engine and its SQLAlchemy store
    hanway.analytics  Profile statistics (retention, streaks, state counts)

Modules:
    hanway.vocabulary_repo  Save, search and list words
    hanway.practice         Practice session over the due cards
    hanway.config           Environment settings and logging setup
"""

__version__ = "0.1.0"
