"""Customer router - FastAPI endpoints for customer operations"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_manager, get_current_user
from ...database import get_db
from ...models import Customer, User
from .schemas import CustomerCreate, CustomerResponse, CustomerUpdate
from .service import CustomerService

router = APIRouter(prefix="/customers", tags=["Customers"])


def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    """Dependency injection for CustomerService"""
    return CustomerService(db)


def build_customer_response(customer: Customer) -> CustomerResponse:
    return CustomerResponse(
        id=customer.id,
        type=customer.type,
        customerType=customer.customer_type,
        firstName=customer.first_name,
        lastName=customer.last_name,
        companyName=customer.company_name,
        displayName=customer.display_name,
        email=customer.email,
        phone=customer.phone,
        address=customer.address,
        notes=customer.notes,
        isActive=bool(customer.is_active),
        createdAt=customer.created_at,
    )


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[CustomerResponse])
async def get_customers(
    current_user: User = Depends(get_current_user),
    service: CustomerService = Depends(get_customer_service),
    include_inactive: bool = Query(False, description="Include deactivated customers"),
):
    """Customers for the caller's organization, ordered by company name"""
    customers = service.get_customers(current_user, include_inactive)
    return [build_customer_response(customer) for customer in customers]


@router.post("", response_model=CustomerResponse, status_code=201)
async def create_customer(
    data: CustomerCreate,
    current_user: User = Depends(get_current_manager),
    service: CustomerService = Depends(get_customer_service),
):
    customer = service.create_customer(data, current_user)
    return build_customer_response(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    current_user: User = Depends(get_current_user),
    service: CustomerService = Depends(get_customer_service),
):
    return build_customer_response(service.get_customer(customer_id, current_user))


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    current_user: User = Depends(get_current_manager),
    service: CustomerService = Depends(get_customer_service),
):
    """Partial update; isActive false hides the customer from the default list"""
    customer = service.update_customer(customer_id, data, current_user)
    return build_customer_response(customer)
