"""
Internationalization (i18n) module for the GTM traffic manager.

Holds every user-facing message in English (en) and German (de).
"""

from typing import Optional


SUPPORTED_LANGUAGES = frozenset({"en", "de"})
DEFAULT_LANGUAGE = "en"


# Structure: {message_key: {language_code: translated_message}}
TRANSLATIONS: dict[str, dict[str, str]] = {
    # Update results
    "update.no_updates_needed": {
        "en": "No property updates were needed.",
        "de": "Keine Property-Aktualisierungen erforderlich.",
    },
    "update.dry_run": {
        "en": "Planned changes (dry run)",
        "de": "Geplante Änderungen (Probelauf)",
    },
    "update.no_changes": {
        "en": "No changes planned",
        "de": "Keine Änderungen geplant",
    },

    # Propagation monitoring
    "monitor.waiting": {
        "en": "Waiting for completion",
        "de": "Warte auf Abschluss",
    },
    "monitor.complete": {
        "en": "Change deployed",
        "de": "Änderung ausgerollt",
    },
    "monitor.denied": {
        "en": "Change denied",
        "de": "Änderung abgelehnt",
    },
    "monitor.timeout": {
        "en": "Maximum wait time elapsed. Use query-status to confirm successful deployment",
        "de": "Maximale Wartezeit überschritten. Mit query-status die Auslieferung prüfen",
    },
    "monitor.poll_error": {
        "en": "Unable to retrieve domain status",
        "de": "Domain-Status konnte nicht abgerufen werden",
    },

    # Errors (non-verbose categories)
    "error.validation": {
        "en": "Invalid request",
        "de": "Ungültige Anfrage",
    },
    "error.domain_not_found": {
        "en": "Domain {domain} not found",
        "de": "Domain {domain} nicht gefunden",
    },
    "error.property_not_found": {
        "en": "Property {property} not found",
        "de": "Property {property} nicht gefunden",
    },
    "error.update_failed": {
        "en": "Error updating property {property}",
        "de": "Fehler beim Aktualisieren von Property {property}",
    },
    "error.datacenter_list": {
        "en": "Unable to retrieve datacenter list",
        "de": "Rechenzentrumsliste konnte nicht abgerufen werden",
    },
    "error.datacenter_status": {
        "en": "Unable to retrieve datacenter status",
        "de": "Rechenzentrumsstatus konnte nicht abgerufen werden",
    },
    "error.property_status": {
        "en": "Unable to retrieve property status",
        "de": "Property-Status konnte nicht abgerufen werden",
    },
    "error.remote": {
        "en": "Remote service error",
        "de": "Fehler des entfernten Dienstes",
    },

    # Summary tables
    "summary.title": {
        "en": "Datacenter Update Summary",
        "de": "Zusammenfassung der Rechenzentrumsaktualisierung",
    },
    "summary.response_status": {
        "en": "Response Status",
        "de": "Antwortstatus",
    },
    "summary.completed": {
        "en": "Completed Updates",
        "de": "Abgeschlossene Aktualisierungen",
    },
    "summary.failed": {
        "en": "Failed Updates",
        "de": "Fehlgeschlagene Aktualisierungen",
    },
    "summary.no_success": {
        "en": "No successful updates",
        "de": "Keine erfolgreichen Aktualisierungen",
    },
    "summary.no_failures": {
        "en": "No failed property updates",
        "de": "Keine fehlgeschlagenen Aktualisierungen",
    },

    # Status reports
    "report.no_datacenter_status": {
        "en": "No datacenter status available",
        "de": "Kein Rechenzentrumsstatus verfügbar",
    },
    "report.no_summary": {
        "en": "No status summary data available",
        "de": "Keine Statusübersicht verfügbar",
    },
    "report.no_interval_status": {
        "en": "No datacenter interval status available",
        "de": "Kein Intervallstatus der Rechenzentren verfügbar",
    },
    "report.datacenter_status": {
        "en": "Datacenter Status",
        "de": "Rechenzentrumsstatus",
    },
    "report.status_summary": {
        "en": "Status Summary -- Last Update: {last_update}, CutOff: {cut_off}",
        "de": "Statusübersicht -- Letzte Aktualisierung: {last_update}, CutOff: {cut_off}",
    },
}


def get_message(
    key: str,
    language: Optional[str] = None,
    **kwargs,
) -> str:
    """
    Get a translated message by key.

    Unknown keys are returned as-is; unknown languages fall back to the
    default language. Formatting errors leave the template unformatted.

    Examples:
        >>> get_message('monitor.complete', 'en')
        'Change deployed'
        >>> get_message('error.domain_not_found', 'de', domain='example.akadns.net')
        'Domain example.akadns.net nicht gefunden'
    """
    if language not in SUPPORTED_LANGUAGES:
        language = DEFAULT_LANGUAGE

    translations = TRANSLATIONS.get(key)
    if translations is None:
        return key

    message = translations.get(language) or translations.get(DEFAULT_LANGUAGE)
    if message is None:
        return key

    if kwargs:
        try:
            return message.format(**kwargs)
        except KeyError:
            return message
    return message


def get_all_message_keys() -> set[str]:
    return set(TRANSLATIONS)


def get_missing_translations(language: str) -> set[str]:
    """Keys with no translation for ``language``."""
    return {key for key, values in TRANSLATIONS.items() if language not in values}
