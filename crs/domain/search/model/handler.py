"""Handler keys naming the constraint categories a store knows how to apply."""

from enum import StrEnum


class HandlerKey(StrEnum):
    """Well-known handler keys.

    A ParameterMap accepts any string as a handler key; these are the ones
    the bundled SQL store translates. Stores ignore keys they do not know.
    """

    PATIENT_REFERENCE = "patient.reference"
    ENCOUNTER_REFERENCE = "encounter.reference"
    CODED = "coded"
    DATE_RANGE = "date.range"
    STRING = "string"
    COMMON = "common"  # _id, _lastUpdated
    LASTN = "lastn"


# Parameter names understood under HandlerKey.COMMON
SP_RES_ID = "_id"
SP_LAST_UPDATED = "_lastUpdated"
