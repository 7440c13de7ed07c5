from __future__ import annotations


class DomainError(Exception):
    """Base class for errors raised by the domain and service layers.

    The HTTP layer maps each subclass to a status code in
    ``api/exception_handlers.py``; services never raise HTTPException.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class EntityNotFoundError(DomainError):
    def __init__(self, entity_name: str, entity_id: str) -> None:
        super().__init__(f"{entity_name} with id {entity_id} not found")
        self.entity_name = entity_name
        self.entity_id = entity_id


class BusinessRuleViolationError(DomainError):
    pass


class InvalidOperationError(DomainError):
    """The operation is not allowed in the entity's current state."""


class UniqueConstraintViolationError(DomainError):
    def __init__(self, entity_name: str, field: str, value: str) -> None:
        super().__init__(f'{entity_name} with {field} "{value}" already exists')
        self.entity_name = entity_name
        self.field = field
        self.value = value


class PermissionDeniedError(DomainError):
    pass


class AuthenticationError(DomainError):
    pass


# Patients


class PatientNotFoundError(EntityNotFoundError):
    def __init__(self, patient_id: str) -> None:
        super().__init__("Patient", patient_id)


class PatientAlreadyExistsError(UniqueConstraintViolationError):
    def __init__(self, identifier: str, kind: str) -> None:
        super().__init__("Patient", kind, identifier)


class PatientClinicRelationNotFoundError(EntityNotFoundError):
    def __init__(self, patient_id: str, clinic_id: str) -> None:
        DomainError.__init__(
            self,
            f"Patient-clinic relation not found for patient {patient_id} and clinic {clinic_id}",
        )
        self.entity_name = "PatientClinic"
        self.entity_id = f"{patient_id}-{clinic_id}"


class DuplicatePatientNumberError(UniqueConstraintViolationError):
    def __init__(self, clinic_id: str, patient_number: str) -> None:
        DomainError.__init__(
            self,
            f"Patient number {patient_number} already exists in clinic {clinic_id}",
        )
        self.entity_name = "PatientClinic"
        self.field = "patient_number"
        self.value = patient_number
