"""
Field normalizers and validators for client input.
Each validator returns the normalized value or raises a DRF ValidationError.
"""
import re

from dateutil.relativedelta import relativedelta
from django.utils import timezone
from rest_framework import serializers

NON_DIGITS = re.compile(r'\D')
# Unicode letters (accents, ñ) separated by whitespace
PERSON_NAME = re.compile(r'^[^\W\d_]+(?:\s+[^\W\d_]+)*$')

DNI_LENGTHS = (7, 8)
PHONE_MIN_DIGITS = 8
PHONE_MAX_DIGITS = 30
MIN_AGE = 3
MAX_AGE = 120
NAME_MIN_LENGTH = 2
ADDRESS_MIN_LENGTH = 5


def digits_only(value):
    return NON_DIGITS.sub('', value or '')


def normalize_dni(value):
    """'30.111.222' -> '30111222'"""
    digits = digits_only(value)
    if not digits:
        raise serializers.ValidationError('El DNI es obligatorio')
    if len(digits) not in DNI_LENGTHS:
        raise serializers.ValidationError('El DNI debe tener 7 u 8 dígitos numéricos')
    return digits


def normalize_phone(value):
    digits = digits_only(value)
    if not digits:
        raise serializers.ValidationError('El teléfono es obligatorio')
    if not PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS:
        raise serializers.ValidationError(
            f'El teléfono debe contener entre {PHONE_MIN_DIGITS} y {PHONE_MAX_DIGITS} dígitos'
        )
    return digits


def validate_person_name(value, label='El nombre'):
    value = (value or '').strip()
    if not value:
        raise serializers.ValidationError(f'{label} es obligatorio')
    if len(value) < NAME_MIN_LENGTH:
        raise serializers.ValidationError(f'{label} debe tener al menos {NAME_MIN_LENGTH} caracteres')
    if not PERSON_NAME.match(value):
        raise serializers.ValidationError(f'{label} solo puede contener letras y espacios')
    return value


def validate_birth_date(value, today=None):
    today = today or timezone.now().date()
    age = relativedelta(today, value).years
    if value > today or not MIN_AGE <= age <= MAX_AGE:
        raise serializers.ValidationError(f'La edad debe estar entre {MIN_AGE} y {MAX_AGE} años')
    return value


def validate_address(value):
    value = (value or '').strip()
    if len(value) < ADDRESS_MIN_LENGTH:
        raise serializers.ValidationError(
            f'La dirección debe tener al menos {ADDRESS_MIN_LENGTH} caracteres'
        )
    return value
