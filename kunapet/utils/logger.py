import json, os
from datetime import datetime
from kunapet.config import CHECKOUT_LOG_FILE

LOG_FILE = CHECKOUT_LOG_FILE

def log_checkout(session_id, receipt, user_id=None):
    """Agrega el pago confirmado al historial JSON de checkouts."""
    folder = os.path.dirname(LOG_FILE)
    if folder:
        os.makedirs(folder, exist_ok=True)
    record = {'timestamp': datetime.now().isoformat(), 'session_id': session_id, 'user_id': user_id,
              'booking_id': receipt.booking_id, 'method': receipt.method.value, 'total': str(receipt.total)}
    if not os.path.exists(LOG_FILE):
        with open(LOG_FILE, 'w', encoding='utf-8') as f:
            json.dump([record], f, ensure_ascii=False, indent=2)
    else:
        with open(LOG_FILE, 'r+', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError:
                data = []
            data.append(record)
            f.seek(0)
            json.dump(data, f, ensure_ascii=False, indent=2)
            f.truncate()
