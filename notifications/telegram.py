import html
import logging
import requests
from typing import List, Optional

logger = logging.getLogger(__name__)

def send_telegram_notification(message: str, bot_token: Optional[str], chat_id: Optional[str], timeout: float = 10) -> bool:
    """
    Отправка уведомления в Telegram

    Args:
        message: Текст сообщения (HTML)
        bot_token: Токен бота
        chat_id: ID чата

    Returns:
        True если отправка успешна, False в противном случае
    """
    if not message or not message.strip():
        logger.warning("Telegram: пустое сообщение")
        return False

    if not bot_token or not chat_id:
        logger.warning(f"Telegram уведомления не настроены: token={'установлен' if bot_token else 'НЕ установлен'}, chat_id={'установлен' if chat_id else 'НЕ установлен'}")
        return False

    url = f"https://api.telegram.org/bot{bot_token.strip()}/sendMessage"
    payload = {
        "chat_id": str(chat_id).strip(),
        "text": message,
        "parse_mode": "HTML"
    }

    try:
        response = requests.post(url, json=payload, timeout=timeout)
        response.raise_for_status()

        result = response.json()
        if result.get("ok"):
            logger.info(f"Telegram уведомление отправлено в chat {chat_id}")
            return True
        logger.error(f"Telegram API вернул ошибку: {result.get('description', 'Unknown error')}")
        return False

    except requests.exceptions.Timeout:
        logger.warning(f"Telegram: таймаут при отправке уведомления ({timeout} сек)")
        return False
    except requests.exceptions.ConnectionError as e:
        logger.warning(f"Telegram: ошибка подключения: {e}")
        return False
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else 'unknown'
        logger.error(f"Telegram HTTP ошибка: {e} (status: {status})")
        return False
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.error(f"Telegram: ошибка запроса: {e}")
        return False

def format_verification_alert(outcome, failures: List) -> str:
    """
    Сообщение о непройденных проверках ITN.

    Каноническую строку и подпись не включаем - только идентификаторы заказа.
    """
    fields = outcome.notification
    message = "⚠️ <b>ITN не прошёл проверку</b>\n\n"
    message += f"📋 Заказ: <b>{html.escape(fields.order_reference)}</b>\n"
    message += f"🔗 Платеж PayFast: {html.escape(fields.gateway_payment_id)}\n"
    message += f"📦 Статус: {html.escape(fields.payment_status)}\n"
    message += f"📝 Товар: {html.escape(fields.item_name)}\n\n"
    for failure in failures:
        message += f"❌ {html.escape(failure.message)} <code>{html.escape(failure.error_code)}</code>\n"
    return message

def make_telegram_failure_hook(bot_token: str, chat_id: str):
    """Хук для ITNVerifier: отправляет алерт в Telegram при непройденных проверках."""
    def hook(outcome, failures):
        send_telegram_notification(format_verification_alert(outcome, failures), bot_token, chat_id)
    return hook
