import logging
from typing import Optional, Union

from pydantic import EmailStr, TypeAdapter, ValidationError

from transit_booking.auth.schemas import CUSTOMER_ROLE, Administrator, Customer, PersonBase
from transit_booking.auth.utils import get_password_hash
from transit_booking.exceptions import (
    AuthenticationFailedError, DuplicateEmailError, EntityNotFoundError,
    InputValidationError, NotAuthorizedError,
)
from transit_booking.locking import KeyedLock, person_key
from transit_booking.storage.interfaces import Repository

logger = logging.getLogger(__name__)

LOGIN_DENIED = "Access denied, invalid combination of email and password provided!"
USER_NOT_FOUND = "User does not exist!"

PersonRef = Union[PersonBase, str]

_email_adapter = TypeAdapter(EmailStr)

def normalize_email(email: str) -> str:
    """Apply the normalization accounts get on registration (lowercased domain)

    Strings that are not valid addresses are returned unchanged, they simply
    match no account.
    """
    try:
        return _email_adapter.validate_python(email)
    except ValidationError:
        return email

def email_of(person: PersonRef) -> str:
    """Key of a person given either the entity or its e-mail"""
    if isinstance(person, PersonBase):
        return person.email
    if isinstance(person, str):
        return normalize_email(person)
    raise InputValidationError("A person must be given as an account or an e-mail address!")

def require_positive_amount(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InputValidationError("The amount must be a positive whole number!")
    return amount

class UserService:
    """Registration, login and customer balance management"""

    def __init__(self, persons: Repository, locks: Optional[KeyedLock] = None):
        self.persons = persons
        self.locks = locks or KeyedLock()

    # ================================
    # Accounts
    # ================================
    def register_user(self, username: str, email: str, password: str, is_admin: bool) -> Union[Administrator, Customer]:
        """Create a customer or administrator account"""
        if not username or not username.strip():
            raise InputValidationError("The username cannot be empty!")
        if not password or not password.strip():
            raise InputValidationError("The password cannot be empty!")

        account_type = Administrator if is_admin else Customer
        try:
            person = account_type(username=username, email=email, password_hash=get_password_hash(password))
        except ValidationError as e:
            raise InputValidationError("Please enter a valid e-mail address!") from e

        with self.locks.hold(person_key(person.email)):
            if not self.persons.create(person):
                logger.warning("Registration with a taken e-mail", extra={"customer_email": person.email})
                raise DuplicateEmailError(person.email)

        context_key = "admin_email" if person.is_admin else "customer_email"
        logger.info("Registered %s", person.role, extra={context_key: person.email})
        return person

    def check_login_credentials(self, email: str, password: str) -> Union[Administrator, Customer]:
        """Return the account when the password matches"""
        email = normalize_email(email)
        person = self.persons.get(email)
        if person is None:
            error = EntityNotFoundError(LOGIN_DENIED)
            logger.warning("Login rejected", extra={"customer_email": email, "error_code": error.code.value})
            raise error
        if not person.is_authentic(password):
            error = AuthenticationFailedError(LOGIN_DENIED)
            logger.warning("Login rejected", extra={"customer_email": email, "error_code": error.code.value})
            raise error
        return person

    def get_person(self, person: PersonRef) -> Union[Administrator, Customer]:
        """Re-read the stored account"""
        found = self.persons.get(email_of(person))
        if found is None:
            raise EntityNotFoundError(USER_NOT_FOUND)
        return found

    def require_customer(self, person: PersonRef) -> Customer:
        found = self.get_person(person)
        if found.role != CUSTOMER_ROLE:
            raise NotAuthorizedError()
        return found

    def require_admin(self, person: PersonRef) -> Administrator:
        found = self.get_person(person)
        if not found.is_admin:
            raise NotAuthorizedError()
        return found

    # ================================
    # Balance
    # ================================
    def get_balance(self, customer: PersonRef) -> int:
        return self.require_customer(customer).balance

    def add_balance(self, customer: PersonRef, amount: int) -> int:
        """Top up a customer's balance and return the new value"""
        require_positive_amount(amount)
        email = email_of(customer)
        with self.locks.hold(person_key(email)):
            found = self.require_customer(email)
            found.balance += amount
            self.persons.update(found)
        logger.info("Balance topped up", extra={"customer_email": email})
        return found.balance

    def reduce_balance(self, customer: PersonRef, amount: int) -> int:
        """Withdraw from a customer's balance and return the new value"""
        require_positive_amount(amount)
        email = email_of(customer)
        with self.locks.hold(person_key(email)):
            found = self.require_customer(email)
            if amount > found.balance:
                raise InputValidationError("Insufficient balance for this withdrawal!")
            found.balance -= amount
            self.persons.update(found)
        logger.info("Balance withdrawn", extra={"customer_email": email})
        return found.balance
