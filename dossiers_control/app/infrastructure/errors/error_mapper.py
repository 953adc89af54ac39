from dossiers_client_sdk.errors import ApiError


class ErrorMapper:
    _KNOWN_CODES = {
        "TIMEOUT_ERROR": ("Le serveur a mis trop de temps à répondre.", "Réessayez ou modifiez un filtre pour relancer la recherche."),
        "NETWORK_ERROR": ("Impossible de joindre le serveur.", "Vérifiez la connexion réseau puis réessayez."),
        "INTERNAL_ERROR": ("Erreur interne lors du chargement.", "Réessayez dans quelques secondes."),
    }

    _STATUS_HINTS = {
        400: ("INVALID_FILTER", "Les critères de recherche ont été refusés par le serveur.", "Corrigez les filtres puis réessayez."),
        401: ("SESSION_EXPIRED", "Votre session a expiré.", "Reconnectez-vous pour continuer."),
        403: ("PERMISSION_DENIED", "Accès refusé à cette liste.", "Demandez les droits nécessaires à un administrateur."),
        404: ("NOT_FOUND", "La liste demandée est introuvable.", "Vérifiez l'adresse du serveur configurée."),
        500: ("INTERNAL_ERROR", "Erreur serveur lors du chargement des données.", "Réessayez et transmettez le trace_id si le problème persiste."),
    }

    @classmethod
    def to_payload(cls, error: Exception) -> dict:
        if isinstance(error, ApiError):
            status_code = error.status_code or -1
            mapped = cls._STATUS_HINTS.get(status_code)
            if mapped is None and status_code >= 500:
                mapped = cls._STATUS_HINTS[500]
            if mapped is not None:
                code, message, suggestion = mapped
            else:
                message, suggestion = cls._KNOWN_CODES.get(
                    error.code,
                    (error.message, "Contactez le support avec le trace_id."),
                )
                code = error.code
            return {
                "code": code,
                "message": message,
                "details": error.details,
                "trace_id": error.trace_id,
                "suggestion": suggestion,
            }
        return {
            "code": "INTERNAL_ERROR",
            "message": str(error),
            "details": None,
            "trace_id": None,
            "suggestion": "Réessayez et signalez l'incident s'il persiste.",
        }

    @classmethod
    def to_display_message(cls, error: Exception) -> str:
        payload = cls.to_payload(error)
        message = f"{payload['message']} {payload['suggestion']}"
        if payload["trace_id"]:
            message = f"{message} (trace_id={payload['trace_id']})"
        return message
