from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse
from functools import lru_cache
from pydantic import BaseModel
from typing import Optional
from urllib.parse import parse_qsl
from core.config import settings
from payments.checkout import build_checkout_url
from payments.itn import ITNConfig, ITNVerifier
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])
itn_router = APIRouter(tags=["itn"])

class CheckoutRequest(BaseModel):
    order_id: str
    amount: str
    email: Optional[str] = None
    item_description: Optional[str] = None

@lru_cache()
def get_itn_verifier() -> ITNVerifier:
    """Один верификатор на процесс: конфигурация неизменяема после старта."""
    hook = None
    if settings.TELEGRAM_BOT_TOKEN and settings.TELEGRAM_CHAT_ID:
        from notifications.telegram import make_telegram_failure_hook
        hook = make_telegram_failure_hook(settings.TELEGRAM_BOT_TOKEN, settings.TELEGRAM_CHAT_ID)
    return ITNVerifier(ITNConfig.from_settings(settings), on_failure=hook)

def get_origin_host(request: Request) -> str:
    if settings.ORIGIN_SOURCE == "client_address":
        return request.client.host if request.client else ""
    return request.headers.get("host", "")

async def _notification_params(request: Request):
    """
    Поля ITN в порядке получения: тело формы (POST), иначе query string.
    """
    if request.method == "POST":
        body_bytes = await request.body()
        if body_bytes:
            try:
                pairs = parse_qsl(body_bytes.decode("utf-8"), keep_blank_values=True)
            except UnicodeDecodeError:
                logger.warning("ITN body is not valid UTF-8, falling back to query string")
                pairs = []
            if pairs:
                return tuple(pairs)
    return tuple(request.query_params.multi_items())

@itn_router.api_route("/payment_notify", methods=["GET", "POST"], response_class=PlainTextResponse)
async def payment_notify(
    request: Request,
    background_tasks: BackgroundTasks,
    verifier: ITNVerifier = Depends(get_itn_verifier),
    origin_host: str = Depends(get_origin_host)
):
    """
    ITN endpoint PayFast.

    Шлюзу сразу отвечаем 200 "Success" - всегда, независимо от результата проверок.
    Проверки (подпись, источник, подтверждение) выполняются фоновой задачей после ответа.
    """
    params = await _notification_params(request)
    client_ip = request.client.host if request.client else "unknown"
    logger.info(f"ITN endpoint called from IP: {client_ip}, {len(params)} fields")

    background_tasks.add_task(verifier.process, params, origin_host)
    return PlainTextResponse("Success", status_code=200)

@router.post("/checkout")
def create_checkout_endpoint(body: CheckoutRequest):
    """
    Ссылка на оплату заказа через PayFast.
    """
    try:
        url = build_checkout_url(
            order_id=body.order_id,
            amount=body.amount,
            email=body.email,
            item_description=body.item_description
        )
    except ValueError as e:
        logger.warning(f"Checkout link for order {body.order_id} rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    return {"url": url}
