# services/charge_aggregator.py
from decimal import Decimal
from typing import List

from models import Job, JobCharge
from services.errors import NoBillableChargesError


def select_billable_charges(job: Job) -> List[JobCharge]:
     """
     Pick the charges of ``job`` that can go on an invoice.

     Zero (voided) charges are dropped; order is preserved.

     Raises:
          NoBillableChargesError: nothing left to bill
     """
     billable = [
          charge for charge in job.charges
          if charge.amount is not None and Decimal(charge.amount) > 0
     ]
     if not billable:
          raise NoBillableChargesError(
               f"Job {job.job_number} has no billable charges; add charges before invoicing",
               job_id=job.id,
               job_number=job.job_number,
               charge_count=len(job.charges),
          )
     return billable
