"""Main application entry point for the PO intake engine demo."""
import asyncio
import logging
from typing import Any, Dict, Optional

from config import engine_config
from rules.reference_data import ReferenceDataStore
from utils.helpers import format_currency
from workflows.intake_workflow import IntakeWorkflow
from workflows.submission import InMemorySubmissionService

# Configure logging
logging.basicConfig(
    level=getattr(logging, engine_config.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(engine_config.log_file),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)


class POIntakeApp:
    """Demo application driving one intake session end to end."""

    def __init__(self):
        self.reference: Optional[ReferenceDataStore] = None
        self.submission: Optional[InMemorySubmissionService] = None
        self.is_initialized = False

    async def initialize(self):
        """Initialize the application components."""
        try:
            logger.info("Initializing PO Intake Engine...")

            if not engine_config.is_configured:
                raise ValueError("PO intake configuration is invalid")

            self.reference = ReferenceDataStore.from_json(engine_config.reference_data_path)
            self.submission = InMemorySubmissionService()

            self.is_initialized = True
            logger.info("PO Intake Engine initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize application: {e}")
            raise

    def new_session(self) -> IntakeWorkflow:
        return IntakeWorkflow(self.reference, submission=self.submission, config=engine_config)

    async def run_sample_intake(self) -> Dict[str, Any]:
        """Fill a sample service order section by section and submit it."""
        if not self.is_initialized:
            await self.initialize()

        workflow = self.new_session()
        workflow.set_subtype("service")
        workflow.set_beneficiary("ben-fund")
        workflow.set_currency("cur-brl")
        workflow.set_total_value("150000.00")
        workflow.set_expense_nature("nat-deal")

        workflow.select_cost_center(0, "cc-100")
        workflow.select_gl_account(0, "gl-410")
        workflow.set_allocation_amount(0, "100000.00")
        row = workflow.append_allocation_row()
        workflow.select_cost_center(row, "cc-200")
        workflow.select_gl_account(row, "gl-410")
        workflow.set_allocation_amount(row, "50000.00")

        workflow.select_supplier("sup-001")
        contracts = workflow.valid_contracts()
        if contracts:
            workflow.select_contract(contracts[0].id)
        else:
            workflow.submit_contract_request("Master services agreement")

        workflow.set_payment_method("pm-ted")
        workflow.set_payment_detail("bank_name", "Banco do Brasil")
        workflow.set_payment_detail("agency", "1234")
        workflow.set_payment_detail("account", "56789-0")
        workflow.select_payment_day(15)
        workflow.set_frequency("installments")
        workflow.set_installments(3)
        workflow.set_description("Due diligence advisory for the Q3 acquisition")

        requirement = workflow.approval_requirement
        if requirement.functional_approvers:
            workflow.choose_functional_approver(requirement.functional_ids[0])
        if requirement.senior_required and requirement.senior_approvers:
            workflow.choose_senior_approver(requirement.senior_ids[0])

        self.print_session_summary(workflow)
        result = await workflow.submit()
        for notice in workflow.drain_notices():
            logger.info(f"Notice [{notice.level}] {notice.code}: {notice.message}")
        return result

    def print_session_summary(self, workflow: IntakeWorkflow):
        """Print a formatted summary of the intake session."""
        snapshot = workflow.snapshot()
        print("\n" + "=" * 60)
        print("PURCHASE ORDER INTAKE SUMMARY")
        print("=" * 60)
        print(f"Session: {snapshot['session_id']}")
        print(f"Amount: {format_currency(workflow.fields.total_value)}")

        print("\nSections:")
        for section in snapshot["sections"]:
            flags = "valid" if section["valid"] else ("visible" if section["visible"] else "hidden")
            print(f"  {section['section']}. {section['name']:<18} {flags}")

        print("\nAllocation:")
        for row in snapshot["allocation"]["rows"]:
            print(f"  {row['cost_center_id']} / {row['gl_account_id']} -> {row['company_id']}: "
                  f"{format_currency(row['amount'])} ({row['percentage']}%)")

        resolved = snapshot["payment_date"]
        if resolved:
            adjusted = " (adjusted)" if resolved["is_adjusted"] else ""
            print(f"\nPayment date: {resolved['date']}{adjusted}")
        for line in workflow.installment_plan():
            print(f"  #{line.number} {line.company_id} {line.due_date.isoformat()} "
                  f"{format_currency(line.amount)}")

        approval = snapshot["approval"]
        print(f"\nApprovers: functional={approval['functional']} senior={approval['senior']} "
              f"(senior required: {approval['senior_required']})")
        print(f"Contract: {snapshot['contract']['state']}")
        print(f"\nSUBMIT ENABLED: {snapshot['submit_enabled']}")
        if snapshot["submit_blockers"]:
            print(f"BLOCKERS: {', '.join(snapshot['submit_blockers'])}")
        print("=" * 60)

    async def close(self):
        """Clean up application resources."""
        logger.info("PO Intake Engine closed")


async def main():
    """Main application entry point."""
    app = POIntakeApp()

    try:
        await app.initialize()
        result = await app.run_sample_intake()
        print(f"\nSubmission: {result.get('message')}")

    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
    except Exception as e:
        logger.error(f"Application error: {e}")
    finally:
        await app.close()


if __name__ == "__main__":
    asyncio.run(main())
