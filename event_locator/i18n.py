"""
Static translation table and a pure renderer.

render() never touches global state: the caller passes the locale explicitly,
which keeps per-recipient rendering safe when many users are handled at once.
"""
from typing import Any, Mapping

DEFAULT_LOCALE = "en"
SUPPORTED_LANGUAGES = ("en", "es", "fr")

TRANSLATIONS: dict[str, dict[str, str]] = {
    "en": {
        "events.created": "Event created successfully",
        "events.not_found": "Event not found",
        "events.updated": "Event updated successfully",
        "events.deleted": "Event deleted successfully",
        "events.changed": "Event {event} has been updated: {changes} changed",
        "events.cancelled_notice": "Event {event} has been cancelled",
        "events.completed_notice": "Event {event} has ended",
        "events.reminder": "Reminder: {event} is starting at {time}",
        "events.creator_update": "Your event {title} was updated: {changes}",
        "events.creator_delete": "Your event {title} was cancelled",
        "events.invalid_transition": "Event status cannot change from {current} to {new}",
        "events.coordinates_required": "Latitude and longitude are required",
        "events.all_coordinates_required": "All coordinates (lat1, lon1, lat2, lon2) are required",
        "notifications.not_found": "Notification not found",
        "notifications.all_marked_read": "All notifications marked as read",
        "notifications.deleted": "Notification deleted",
        "notifications.created": "Notification created",
        "push.subscribed": "Push subscription saved",
        "push.unsubscribed": "Push subscription removed",
        "validation.missing_fields": "Required fields missing: {fields}",
        "validation.invalid": "Invalid request: {fields}",
        "auth.forbidden": "Forbidden - You do not have permission to perform this action",
        "auth.unauthorized": "Authentication required",
        "auth.account_inactive": "Your account is not active",
        "errors.generic": "Something went wrong",
        "errors.not_found": "Not found",
        "errors.conflict": "Already exists",
        "errors.dependency_unavailable": "Service temporarily unavailable",
        "email.event_update.subject": "Update: {event}",
        "email.event_reminder.subject": "Reminder: {event}",
        "email.event_delete.subject": "Cancelled: {event}",
        "email.event_completed.subject": "Finished: {event}",
        "email.system.subject": "Event Locator notification",
    },
    "es": {
        "events.created": "Evento creado exitosamente",
        "events.not_found": "Evento no encontrado",
        "events.updated": "Evento actualizado con éxito",
        "events.deleted": "Evento eliminado con éxito",
        "events.changed": "El evento {event} ha sido actualizado: {changes} cambiados",
        "events.cancelled_notice": "El evento {event} ha sido cancelado",
        "events.completed_notice": "El evento {event} ha terminado",
        "events.reminder": "Recordatorio: {event} comienza a las {time}",
        "events.creator_update": "Tu evento {title} fue actualizado: {changes}",
        "events.creator_delete": "Tu evento {title} fue cancelado",
        "events.invalid_transition": "El estado del evento no puede cambiar de {current} a {new}",
        "events.coordinates_required": "Se requieren latitud y longitud",
        "events.all_coordinates_required": "Se requieren todas las coordenadas (lat1, lon1, lat2, lon2)",
        "notifications.not_found": "Notificación no encontrada",
        "notifications.all_marked_read": "Todas las notificaciones marcadas como leídas",
        "notifications.deleted": "Notificación eliminada",
        "notifications.created": "Notificación creada",
        "push.subscribed": "Suscripción push guardada",
        "push.unsubscribed": "Suscripción push eliminada",
        "validation.missing_fields": "Faltan campos requeridos: {fields}",
        "validation.invalid": "Solicitud no válida: {fields}",
        "auth.forbidden": "Prohibido - No tienes permiso para realizar esta acción",
        "auth.unauthorized": "Se requiere autenticación",
        "auth.account_inactive": "Tu cuenta no está activa",
        "errors.generic": "Algo salió mal",
        "errors.not_found": "No encontrado",
        "errors.conflict": "Ya existe",
        "errors.dependency_unavailable": "Servicio no disponible temporalmente",
        "email.event_update.subject": "Actualización: {event}",
        "email.event_reminder.subject": "Recordatorio: {event}",
        "email.event_delete.subject": "Cancelado: {event}",
        "email.event_completed.subject": "Finalizado: {event}",
        "email.system.subject": "Notificación de Event Locator",
    },
    "fr": {
        "events.created": "Événement créé avec succès",
        "events.not_found": "Événement introuvable",
        "events.updated": "Événement mis à jour avec succès",
        "events.deleted": "Événement supprimé avec succès",
        "events.changed": "L'événement {event} a été mis à jour: {changes} modifiés",
        "events.cancelled_notice": "L'événement {event} a été annulé",
        "events.completed_notice": "L'événement {event} est terminé",
        "events.reminder": "Rappel: {event} commence à {time}",
        "events.creator_update": "Votre événement {title} a été mis à jour: {changes}",
        "events.creator_delete": "Votre événement {title} a été annulé",
        "events.invalid_transition": "Le statut de l'événement ne peut pas passer de {current} à {new}",
        "events.coordinates_required": "La latitude et la longitude sont requises",
        "events.all_coordinates_required": "Toutes les coordonnées (lat1, lon1, lat2, lon2) sont requises",
        "notifications.not_found": "Notification introuvable",
        "notifications.all_marked_read": "Toutes les notifications marquées comme lues",
        "notifications.deleted": "Notification supprimée",
        "notifications.created": "Notification créée",
        "push.subscribed": "Abonnement push enregistré",
        "push.unsubscribed": "Abonnement push supprimé",
        "validation.missing_fields": "Champs obligatoires manquants: {fields}",
        "validation.invalid": "Requête invalide: {fields}",
        "auth.forbidden": "Interdit - Vous n'avez pas la permission d'effectuer cette action",
        "auth.unauthorized": "Authentification requise",
        "auth.account_inactive": "Votre compte n'est pas actif",
        "errors.generic": "Une erreur est survenue",
        "errors.not_found": "Introuvable",
        "errors.conflict": "Existe déjà",
        "errors.dependency_unavailable": "Service temporairement indisponible",
        "email.event_update.subject": "Mise à jour: {event}",
        "email.event_reminder.subject": "Rappel: {event}",
        "email.event_delete.subject": "Annulé: {event}",
        "email.event_completed.subject": "Terminé: {event}",
        "email.system.subject": "Notification Event Locator",
    },
}


class _KeepMissing(dict):
    """format_map helper: unknown placeholders are left as-is."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def normalize_locale(locale: str | None) -> str:
    """'es-MX' -> 'es'; anything unsupported -> 'en'."""
    if not locale:
        return DEFAULT_LOCALE
    base = locale.strip().replace("_", "-").split("-")[0].lower()
    return base if base in TRANSLATIONS else DEFAULT_LOCALE


def render(template_key: str, locale: str | None, variables: Mapping[str, Any] | None = None) -> str:
    """
    Render a message template.

    Unknown locale falls back to English, unknown key renders as the key itself,
    missing variables stay as placeholders.
    """
    lang = normalize_locale(locale)
    template = TRANSLATIONS[lang].get(template_key) or TRANSLATIONS[DEFAULT_LOCALE].get(template_key)
    if template is None:
        return template_key
    if not variables:
        return template
    try:
        return template.format_map(_KeepMissing(variables))
    except (ValueError, IndexError):
        return template


def resolve_locale(accept_language: str | None) -> str:
    """Pick the best supported language from an Accept-Language header."""
    if not accept_language:
        return DEFAULT_LOCALE

    candidates: list[tuple[float, int, str]] = []
    for position, part in enumerate(accept_language.split(",")):
        piece = part.strip()
        if not piece:
            continue
        lang, _, params = piece.partition(";")
        quality = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                quality = float(params[2:])
            except ValueError:
                quality = 0.0
        candidates.append((-quality, position, lang.strip()))

    for neg_quality, _, lang in sorted(candidates):
        if neg_quality >= 0:
            continue
        base = lang.replace("_", "-").split("-")[0].lower()
        if base in TRANSLATIONS:
            return base
    return DEFAULT_LOCALE
