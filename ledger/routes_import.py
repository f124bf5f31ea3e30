# routes_import.py
"""
Routes for the file import flow: upload → preview → execute.

Preview endpoints only parse and validate; nothing is written until the
client posts the (possibly edited) preview back to /execute.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import PlainTextResponse

import settings
from ledger.deps import get_execution_engine, get_preview_engine
from ledger.schemas import ImportExecuteRequest, ImportMapping, ImportPreview
from ledger.services.import_execution import ImportExecutionEngine
from ledger.services.import_preview import ImportPreviewEngine

router = APIRouter(prefix="/api/import", tags=["import"])


SAMPLE_QIF = """!Type:Bank
D12/1/2024
T-50.00
PGrocery Store
LFood
CX
NCheck 1001
^
D12/2/2024
T2500.00
PPayroll Deposit
LSalary
C*
^
D12/3/2024
T-25.00
PGas Station
LTransportation
CX
^"""

SAMPLE_CSV = "\n".join([
    'Date,Description,Amount,Category,Reference',
    '12/1/2024,"Grocery Store",-50.00,"Food","Check 1001"',
    '12/2/2024,"Payroll Deposit",2500.00,"Salary",""',
    '12/3/2024,"Gas Station",-25.00,"Transportation",""',
    '12/4/2024,"Online Purchase",-75.50,"Shopping","Card Transaction"',
])

FIELD_SUGGESTIONS = {
    "dateFields": ["date", "Date", "DATE", "transaction_date", "trans_date", "posted_date"],
    "amountFields": ["amount", "Amount", "AMOUNT", "debit", "credit", "transaction_amount", "value"],
    "descriptionFields": ["description", "Description", "DESCRIPTION", "payee", "memo", "details"],
    "categoryFields": ["category", "Category", "CATEGORY", "type", "classification"],
    "referenceFields": ["reference", "Reference", "REFERENCE", "check_number", "transaction_id", "ref_number"],
}


async def _read_upload(file: UploadFile) -> str:
    """
    Read an uploaded text file, enforcing the configured size limit.
    """
    raw = await file.read(settings.IMPORT_MAX_UPLOAD_BYTES + 1)
    if len(raw) > settings.IMPORT_MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.IMPORT_MAX_UPLOAD_MB}MB.",
        )
    if not raw:
        raise HTTPException(status_code=400, detail="No file uploaded")
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be UTF-8 encoded text")


# -------------------------------------------------------------------
# Preview
# -------------------------------------------------------------------

@router.post("/preview-qif", response_model=ImportPreview)
async def preview_qif(
    file: UploadFile = File(...),
    account_id: int = Form(..., alias="accountId"),
    engine: ImportPreviewEngine = Depends(get_preview_engine),
):
    content = await _read_upload(file)
    return engine.preview_qif(content, account_id)


@router.post("/preview-csv", response_model=ImportPreview)
async def preview_csv(
    file: UploadFile = File(...),
    account_id: int = Form(..., alias="accountId"),
    date_field: str = Form(..., alias="dateField"),
    amount_field: str = Form(..., alias="amountField"),
    description_field: str = Form(..., alias="descriptionField"),
    category_field: Optional[str] = Form(None, alias="categoryField"),
    reference_field: Optional[str] = Form(None, alias="referenceField"),
    engine: ImportPreviewEngine = Depends(get_preview_engine),
):
    """
    Map CSV columns onto transaction fields and preview the result.
    Empty optional mapping fields are treated as "not mapped".
    """
    content = await _read_upload(file)
    mappings = ImportMapping(
        date_field=date_field,
        amount_field=amount_field,
        description_field=description_field,
        category_field=category_field or None,
        reference_field=reference_field or None,
    )
    return engine.preview_csv(content, mappings, account_id, delimiter=settings.CSV_DELIMITER)


# -------------------------------------------------------------------
# Execute
# -------------------------------------------------------------------

@router.post("/execute")
def execute_import(
    payload: ImportExecuteRequest,
    engine: ImportExecutionEngine = Depends(get_execution_engine),
):
    """
    Post every candidate of a preview. Rows that fail are reported in
    `errors`; the rest are committed.
    """
    result = engine.execute(
        payload.preview,
        payload.account_id,
        default_credit_account_id=payload.default_credit_account_id,
        default_debit_account_id=payload.default_debit_account_id,
    )
    body = result.model_dump(by_alias=True, mode="json")
    body["message"] = f"Import completed: {result.success_count} transactions imported"
    return body


# -------------------------------------------------------------------
# Samples & helpers
# -------------------------------------------------------------------

@router.get("/sample-qif", response_class=PlainTextResponse)
def sample_qif():
    return PlainTextResponse(SAMPLE_QIF, media_type="text/plain")


@router.get("/sample-csv", response_class=PlainTextResponse)
def sample_csv():
    return PlainTextResponse(SAMPLE_CSV, media_type="text/csv")


@router.get("/field-suggestions")
def field_suggestions():
    """
    Common header names for each mappable field, for pre-filling a mapping form.
    """
    return FIELD_SUGGESTIONS
