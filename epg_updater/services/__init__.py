"""
Services package for the EPG updater

This package contains all business logic and service layer components.
"""
from epg_updater.services.epg_store import EpgStore, get_epg_store
from epg_updater.services.epg_update_service import EpgUpdater
from epg_updater.services.notification_service import get_import_notifier
from epg_updater.services.scheduler_service import epg_scheduler

__all__ = [
    'EpgStore',
    'EpgUpdater',
    'epg_scheduler',
    'get_epg_store',
    'get_import_notifier',
]
