# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Domain errors raised by services and rendered as JSON at the HTTP boundary.

Each error carries an HTTP status and a user-facing (Serbian) message. Extra
keyword arguments end up as additional fields of the error body.
"""

from typing import Any


class AppError(Exception):
    status_code = 500
    default_detail = "Greška na serveru"

    def __init__(self, detail: str | None = None, **extra: Any) -> None:
        self.detail = detail or self.default_detail
        self.extra = extra
        super().__init__(self.detail)

    def to_body(self) -> dict[str, Any]:
        return {"detail": self.detail, **self.extra}


# Taxonomy


class ValidationFailed(AppError):
    status_code = 400
    default_detail = "Validacija nije uspela"


class Unauthorized(AppError):
    status_code = 401
    default_detail = "Niste prijavljeni"


class Forbidden(AppError):
    status_code = 403
    default_detail = "Pristup nije dozvoljen"


class NotFound(AppError):
    status_code = 404
    default_detail = "Nije pronađeno"


class Conflict(AppError):
    status_code = 409
    default_detail = "Konflikt sa postojećim podacima"


class TooManyRequests(AppError):
    status_code = 429
    default_detail = "Previše zahteva. Pokušajte ponovo kasnije."


class UpstreamFailure(AppError):
    status_code = 500
    default_detail = "Spoljni servis nije dostupan"


# Auth and verification


class InvalidCredentials(Unauthorized):
    default_detail = "Pogrešno korisničko ime ili lozinka"


class AccountBanned(Forbidden):
    default_detail = "Vaš nalog je banovan"


class VerificationRequired(Forbidden):
    default_detail = "Morate verifikovati email adresu da biste pristupili ovoj funkcionalnosti"

    def __init__(self, detail: str | None = None, **extra: Any) -> None:
        super().__init__(detail, requires_verification=True, **extra)


class AdminRequired(Forbidden):
    default_detail = "Samo administratori mogu pristupiti ovoj funkcionalnosti"


class InvalidCode(ValidationFailed):
    default_detail = "Nevažeći ili istekao verifikacioni kod"


class AlreadyVerified(ValidationFailed):
    default_detail = "Email je već verifikovan"


class UsernameTaken(Conflict):
    default_detail = "Korisničko ime već postoji"


class EmailTaken(Conflict):
    default_detail = "Email adresa već postoji"


class NotificationFailure(UpstreamFailure):
    default_detail = "Greška pri slanju email-a. Molimo pokušajte ponovo."


# Contest


class TermsRequired(Forbidden):
    default_detail = "Morate prihvatiti pravila pre učešća u giveaway-u"


class MonthlyLimitExceeded(Conflict):
    default_detail = (
        "Već ste uploadovali projekat ovog meseca. Možete uploadovati samo 1 projekat mesečno."
    )


class DuplicateIpVote(Conflict):
    default_detail = "Sa ove IP adrese je već glasano za ovaj projekat (drugi korisnik)"


class EmptyText(ValidationFailed):
    default_detail = "Komentar ne može biti prazan"
