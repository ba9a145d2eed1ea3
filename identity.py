# identity.py — résolution d'une identité Google vers un Professional local
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flask import current_app

from errors import AccountDisabled, Conflict, ValidationFailure, commit_or_raise
from extensions import db
from models import Professional, ROLE_USER

PROFILE_INCOMPLETE_PATH = "/complete-profile"
PROFILE_COMPLETE_PATH = "/dashboard"


@dataclass(frozen=True)
class GoogleProfile:
    subject: str
    email: Optional[str] = None
    email_verified: bool = False
    given_name: Optional[str] = None
    family_name: Optional[str] = None

    @classmethod
    def from_userinfo(cls, userinfo: dict) -> "GoogleProfile":
        """Construit le profil depuis la réponse OpenID Connect `userinfo`."""
        email = (userinfo.get("email") or "").lower().strip() or None
        verified = userinfo.get("email_verified")
        if isinstance(verified, str):
            verified = verified.strip().lower() == "true"
        return cls(
            subject=str(userinfo.get("sub") or ""),
            email=email,
            email_verified=bool(verified),
            given_name=userinfo.get("given_name"),
            family_name=userinfo.get("family_name"),
        )


def resolve_professional(profile: GoogleProfile) -> Professional:
    """
    Trouve, lie ou crée le Professional correspondant à l'identité Google.

    1) recherche par sub ; 2) sinon par email, puis rattachement du sub
    (uniquement si Google certifie l'email) ; 3) sinon création d'un profil
    partiel. Un compte inactif lève AccountDisabled, même avec un jeton valide.
    """
    if not profile.subject:
        raise ValidationFailure("Identidad de Google sin identificador")

    pro = Professional.query.filter_by(user_id=profile.subject).first()

    if pro is None:
        if not profile.email:
            raise ValidationFailure("No se pudo obtener el email de Google")

        pro = Professional.query.filter_by(email=profile.email).first()
        if pro is not None:
            if not profile.email_verified:
                current_app.logger.warning(
                    "Liaison refusée : email non vérifié %s (sub=%s)", profile.email, profile.subject
                )
                raise Conflict("El email ya está registrado con otra cuenta")
            pro.user_id = profile.subject
            commit_or_raise("linking professional", "El email ya está registrado con otra cuenta")
            current_app.logger.info("Professional %s lié au sub Google %s", pro.id, profile.subject)
        else:
            pro = Professional(
                user_id=profile.subject,
                email=profile.email,
                first_name=profile.given_name,
                last_name=profile.family_name,
                role=ROLE_USER,
                is_active=True,
            )
            db.session.add(pro)
            commit_or_raise("creating professional", "El email ya está registrado con otra cuenta")
            current_app.logger.info("Professional %s créé pour %s", pro.id, profile.email)

    if not pro.is_active:
        current_app.logger.warning("Login refusé : compte désactivé (professional %s)", pro.id)
        raise AccountDisabled()

    return pro


def post_login_destination(pro: Professional) -> str:
    return PROFILE_COMPLETE_PATH if pro.is_profile_complete() else PROFILE_INCOMPLETE_PATH
