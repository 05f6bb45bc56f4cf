"""Device loans on both backends."""
from datetime import date

from eduasset.models.device import DeviceCreate, DeviceStatus
from eduasset.schemas.results import ErrorCode


async def lend(engine, device_id="D1", due="2030-01-31"):
    return await engine.create_loan(device_id, "t-01", "Kim", due, notes="class trip")


async def test_loan_and_return(engine, workspace):
    await engine.register_device(DeviceCreate(id="D1", name="Tablet 1"))

    created = await lend(engine)
    assert created.success
    assert created.id.startswith("loan-")
    device = await workspace.devices.get("D1")
    assert device.status == DeviceStatus.ON_LOAN.value
    assert device.user_name == "Kim"

    loans = (await engine.list_loans()).data
    assert loans[0]["deviceName"] == "Tablet 1"
    assert loans[0]["status"] == "Active"

    returned = await engine.return_loan(created.id)
    assert returned.success
    device = await workspace.devices.get("D1")
    assert device.status == DeviceStatus.AVAILABLE.value
    assert device.user_name == ""
    loan = await workspace.loans.get(created.id)
    assert loan.status == "Returned"
    assert loan.return_date == date.today().isoformat()


async def test_broken_return_sends_device_to_maintenance(engine, workspace):
    await engine.register_device(DeviceCreate(id="D1"))
    created = await lend(engine)
    await engine.return_loan(created.id, condition="Broken")
    assert (await workspace.devices.get("D1")).status == DeviceStatus.MAINTENANCE.value


async def test_device_on_loan_cannot_be_lent_again(engine):
    await engine.register_device(DeviceCreate(id="D1"))
    assert (await lend(engine)).success
    again = await lend(engine)
    assert not again.success
    assert again.error_code == ErrorCode.INVALID


async def test_loan_for_unknown_device(engine):
    result = await lend(engine, device_id="ghost")
    assert result.error_code == ErrorCode.NOT_FOUND


async def test_overdue_status_is_derived(engine):
    await engine.register_device(DeviceCreate(id="D1"))
    await lend(engine, due="2024-03-01")
    loans = (await engine.list_loans(today=date(2024, 3, 2))).data
    assert loans[0]["status"] == "Overdue"
    loans = (await engine.list_loans(today=date(2024, 3, 1))).data
    assert loans[0]["status"] == "Active"


async def test_return_unknown_loan(engine):
    result = await engine.return_loan("loan-ghost")
    assert result.error_code == ErrorCode.NOT_FOUND
