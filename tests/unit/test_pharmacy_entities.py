import pytest

from src.pharmacy.domain.entities.pharmacy_order import PharmacyOrder, PharmacyOrderStatus
from src.pharmacy.domain.entities.prescription import DEFAULT_UNIT, Medication
from src.shared.exceptions import InvalidInputError


def test_medication_line_defaults_unit():
    m = Medication.from_line({"name": "Amoxicillin", "dosage": "250mg / 12h", "quantity": 2})
    assert m.unit == DEFAULT_UNIT
    assert m.duration is None


@pytest.mark.parametrize(
    "line",
    [
        {"name": "", "dosage": "1/day", "quantity": 1},
        {"name": "X", "dosage": "", "quantity": 1},
        {"name": "X", "dosage": "1/day", "quantity": 0},
        {"name": "X", "dosage": "1/day", "quantity": True},
        {"name": "X" * 201, "dosage": "1/day", "quantity": 1},
    ],
)
def test_medication_line_rejects_invalid(line):
    with pytest.raises(InvalidInputError):
        Medication.from_line(line)


def test_order_total_is_sum_of_snapshot_quantities():
    meds = [
        Medication(name="A", dosage="d", quantity=3, unit="tablet"),
        Medication(name="B", dosage="d", quantity=2),
    ]
    order = PharmacyOrder.derive(prescription_id=1, client_id=10, medications=meds)
    assert order.status == PharmacyOrderStatus.PENDING
    assert order.medications == [
        {"name": "A", "quantity": 3, "unit": "tablet"},
        {"name": "B", "quantity": 2, "unit": "unit"},
    ]
    assert order.total_items == sum(line["quantity"] for line in order.medications) == 5


def test_delivered_at_is_set_once():
    order = PharmacyOrder.derive(prescription_id=1, client_id=10, medications=[Medication(name="A", dosage="d", quantity=1)])
    order.move_to(PharmacyOrderStatus.DELIVERED)
    first = order.delivered_at
    assert first is not None
    order.move_to(PharmacyOrderStatus.DELIVERED, notes="picked up")
    assert order.delivered_at == first
    assert order.notes == "picked up"


def test_notes_kept_when_not_given():
    order = PharmacyOrder.derive(prescription_id=1, client_id=10, medications=[], notes="original")
    order.move_to(PharmacyOrderStatus.PREPARING)
    assert order.notes == "original"
    assert order.delivered_at is None
