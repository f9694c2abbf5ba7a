"""Shared fleet fixtures."""

from datetime import datetime

import pytest

from fleet import (
    Driver,
    FleetState,
    FleetStore,
    InventoryItem,
    PendingWork,
    Priority,
    PurchaseRecord,
    ScheduledService,
    TriggerType,
    Vehicle,
    Worker,
)
from fleet.assignments import seed_assignments

NOW = datetime(2024, 6, 1, 10, 0, 0)


def make_state() -> FleetState:
    """Two trucks, three drivers, two stock items, four rules and two open repairs."""
    state = FleetState.from_lists(
        vehicles=[
            Vehicle(
                id="V001",
                vehicle_number="TRK-1001",
                model="Actros",
                driver_id="D001",
                current_km=45000,
                next_service_km=50000,
                total_hours=1200,
            ),
            Vehicle(
                id="V002",
                vehicle_number="TRK-1002",
                model="FH16",
                driver_id="D002",
                current_km=30000,
                next_service_km=35000,
            ),
        ],
        drivers=[
            Driver(id="D001", name="Ahmed Ali", license_number="LIC-001"),
            Driver(id="D002", name="Omar Saleh", license_number="LIC-002"),
            Driver(id="D003", name="Khalid Nasser", license_number="LIC-003"),
        ],
        workers=[
            Worker(id="W001", name="Faisal", role="Mechanic"),
            Worker(id="W002", name="Yousef", role="Electrician"),
        ],
        inventory=[
            InventoryItem(
                id="INV001",
                sku="OIL-15W40",
                name="Engine Oil 15W-40",
                stock_available=25,
                last_purchase_price=820,
                average_price=820,
                purchase_history=[
                    PurchaseRecord(id="P001", purchase_date="2024-01-10", quantity=25, unit_price=820),
                ],
            ),
            InventoryItem(
                id="INV002",
                sku="FLT-001",
                name="Oil Filter",
                stock_available=3,
                last_purchase_price=45,
                average_price=45,
            ),
        ],
        scheduled_services=[
            ScheduledService(
                id="SS001",
                vehicle_id="V001",
                service_type="Oil Change",
                trigger_type=TriggerType.KM,
                trigger_value=5000,
                next_due_km=50000,
            ),
            ScheduledService(
                id="SS002",
                vehicle_id="V001",
                service_type="Hydraulic Service",
                trigger_type=TriggerType.HOURS,
                trigger_value=500,
            ),
            ScheduledService(
                id="SS003",
                vehicle_id="V001",
                service_type="Annual Inspection",
                trigger_type=TriggerType.DATE,
                trigger_value=12,
                next_due_date="2024-12-01",
            ),
            ScheduledService(
                id="SS004",
                vehicle_id="V002",
                service_type="Oil Change",
                trigger_type=TriggerType.KM,
                trigger_value=5000,
                next_due_km=35000,
            ),
        ],
        pending_work=[
            PendingWork(
                id="PW001",
                vehicle_id="V001",
                vehicle_number="TRK-1001",
                description="Fix brake light",
                priority=Priority.HIGH,
                created_date="2024-05-01",
            ),
            PendingWork(
                id="PW002",
                vehicle_id="V002",
                vehicle_number="TRK-1002",
                description="Replace wiper blades",
                priority=Priority.LOW,
                created_date="2024-05-02",
            ),
        ],
    )
    seed_assignments(state, datetime(2024, 1, 1, 8, 0, 0))
    return state


@pytest.fixture
def state():
    return make_state()


@pytest.fixture
def store():
    return FleetStore(make_state(), clock=lambda: NOW)


SAMPLE_FLEET = """
vehicles:
  - id: V001
    vehicleNumber: TRK-1001
    model: Actros
    type: Truck
    branch: Riyadh
    driverId: D001
    currentKM: 45000
    nextServiceKM: 50000
    totalHours: 1200
    status: Active
  - id: V002
    vehicleNumber: TRK-1002
    model: FH16
    currentKM: 30000
    status: Idle

drivers:
  - id: D001
    name: Ahmed Ali
    licenseNumber: LIC-001
  - id: D002
    name: Omar Saleh

workers:
  - id: W001
    name: Faisal
    role: Mechanic

inventory:
  - id: INV001
    sku: OIL-15W40
    name: Engine Oil 15W-40
    stockAvailable: 25
    lastPurchasePrice: 790
    averagePrice: 816
    purchaseHistory:
      - id: P001
        purchaseDate: '2024-01-10'
        quantity: 15
        unitPrice: 850
        supplier: Petromin
      - id: P002
        purchaseDate: '2024-02-10'
        quantity: 20
        unitPrice: 790

scheduledServices:
  - id: SS001
    vehicleId: V001
    serviceType: Oil Change
    triggerType: KM
    triggerValue: 5000
    nextDueKM: 50000
    status: Upcoming

pendingWork:
  - id: PW001
    vehicleId: V001
    vehicleNumber: TRK-1001
    description: Fix brake light
    priority: High
    createdDate: '2024-05-01'
    status: Pending

documents:
  - id: DOC001
    documentType: Insurance
    documentNumber: INS-1
    vehicleId: V001
    expiryDate: '2024-06-20'
    status: Expiring Soon
"""


@pytest.fixture
def fleet_file(tmp_path):
    path = tmp_path / "fleet.yaml"
    path.write_text(SAMPLE_FLEET)
    return path
