"""
Validation métier des saisies d'arrivée et de départ.

Règles appliquées dans l'ordre ; la première règle violée donne le message :
1. nom, téléphone ou type manquant
2. type de participant inconnu
3. bénévole sans opportunité
4. bénévole sans numéro d'identité nationale
5. identité nationale mal formée (^1\\d{9}$)
6. téléphone mal formé (^05\\d{8}$)
7. ville hors de la liste des branches
"""

import re

from attendance_tracker.exceptions import CheckInValidationError
from attendance_tracker.schemas.attendance import (
    CITIES,
    CheckInData,
    CheckInRequest,
    ParticipantType,
)
from attendance_tracker.services.temporal import to_ascii_digits

PHONE_REGEX = re.compile(r"^05\d{8}$")
NATIONAL_ID_REGEX = re.compile(r"^1\d{9}$")

MISSING_FIELDS_MESSAGE = "الرجاء إدخال جميع البيانات المطلوبة"
INVALID_TYPE_MESSAGE = "نوع المشارك غير صالح"
MISSING_OPPORTUNITY_MESSAGE = "الرجاء اختيار مسمى الفرصة التطوعية"
MISSING_NATIONAL_ID_MESSAGE = "الرجاء إدخال رقم الهوية الوطنية للمتطوع"
INVALID_NATIONAL_ID_MESSAGE = "رقم الهوية الوطنية يجب أن يتكون من 10 أرقام ويبدأ بالرقم 1"
INVALID_PHONE_MESSAGE = "رقم الجوال يجب أن يبدأ بـ 05 ويتكون من 10 أرقام"
INVALID_CITY_MESSAGE = "الرجاء اختيار فرع صحيح"
MISSING_CHECKOUT_PHONE_MESSAGE = "الرجاء إدخال رقم الجوال"


def validate_check_in(data: CheckInRequest) -> CheckInData:
    """
    Valide une saisie d'arrivée et retourne sa forme normalisée.
    Lève CheckInValidationError avec le message de la première règle violée.
    """
    name = data.name.strip()
    phone = to_ascii_digits(data.phone.strip())
    raw_type = data.type.strip()

    if not name or not phone or not raw_type:
        raise CheckInValidationError(MISSING_FIELDS_MESSAGE)

    participant_type = ParticipantType.parse(raw_type)
    if participant_type is None:
        raise CheckInValidationError(INVALID_TYPE_MESSAGE)

    opportunity = ""
    national_id = ""
    if participant_type is ParticipantType.VOLUNTEER:
        opportunity = data.opportunity.strip()
        national_id = to_ascii_digits(data.national_id.strip())
        if not opportunity:
            raise CheckInValidationError(MISSING_OPPORTUNITY_MESSAGE)
        if not national_id:
            raise CheckInValidationError(MISSING_NATIONAL_ID_MESSAGE)
        if not NATIONAL_ID_REGEX.match(national_id):
            raise CheckInValidationError(INVALID_NATIONAL_ID_MESSAGE)

    if not PHONE_REGEX.match(phone):
        raise CheckInValidationError(INVALID_PHONE_MESSAGE)

    city = data.city.strip()
    if city not in CITIES:
        raise CheckInValidationError(INVALID_CITY_MESSAGE)

    return CheckInData(
        city=city,
        name=name,
        phone=phone,
        type=participant_type,
        opportunity=opportunity,
        national_id=national_id,
    )


def validate_check_out_phone(phone: str) -> str:
    """Téléphone de départ : seule la présence est exigée (la recherche fait le reste)."""
    normalized = to_ascii_digits((phone or "").strip())
    if not normalized:
        raise CheckInValidationError(MISSING_CHECKOUT_PHONE_MESSAGE)
    return normalized
