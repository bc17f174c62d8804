# pricewise/storage/price_store.py

"""SQLite-backed store for tracked products and their price history.

Reads that act for a user take an ``owner`` argument and only see that
owner's rows.  Passing ``owner=None`` is the service path used by the
scrapers and the daily run.
"""

import logging
import re
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from pricewise.errors import PersistenceFailure
from pricewise.models.price_alert import PriceAlert
from pricewise.models.price_record import PriceRecord, PriceStatistics
from pricewise.models.product import Product

logger = logging.getLogger("pricewise.storage")

# Amazon / Flipkart tracking params that vary per session
_TRACKING_PARAMS: frozenset[str] = frozenset({
    "ref", "ref_", "dib", "dib_tag", "qid", "sr", "spc",
    "sp_csd", "xpid", "aref", "sp_cr", "psc", "smid",
    "keywords", "crid", "sprefix", "pd_rd_i", "pd_rd_r",
    "pd_rd_w", "pd_rd_wg", "pf_rd_i", "pf_rd_m", "pf_rd_p",
    "pf_rd_r", "pf_rd_s", "pf_rd_t", "th", "linkcode",
    "tag", "lid", "marketplace", "store", "srno", "otracker",
    "otracker1", "fm", "iid", "ppt", "ppn", "ssid", "qh",
    "utm_source", "utm_medium", "utm_campaign",
})

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS products (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    source_url  TEXT NOT NULL,
    name        TEXT NOT NULL,
    brand       TEXT NOT NULL DEFAULT '',
    category    TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT '',
    image_url   TEXT NOT NULL DEFAULT '',
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL,
    UNIQUE (user_id, source_url)
);

CREATE TABLE IF NOT EXISTS price_history (
    id            TEXT PRIMARY KEY,
    product_id    TEXT NOT NULL
                  REFERENCES products(id) ON DELETE CASCADE,
    platform_name TEXT NOT NULL,
    platform_url  TEXT NOT NULL,
    price         REAL NOT NULL CHECK (price >= 0),
    currency      TEXT NOT NULL DEFAULT 'INR',
    in_stock      INTEGER NOT NULL DEFAULT 1,
    captured_at   TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS price_alerts (
    id           TEXT PRIMARY KEY,
    user_id      TEXT NOT NULL,
    product_id   TEXT NOT NULL
                 REFERENCES products(id) ON DELETE CASCADE,
    target_price REAL NOT NULL CHECK (target_price >= 0),
    is_active    INTEGER NOT NULL DEFAULT 1,
    created_at   TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_products_user_id
    ON products(user_id);
CREATE INDEX IF NOT EXISTS idx_price_history_product_date
    ON price_history(product_id, captured_at);
CREATE INDEX IF NOT EXISTS idx_price_alerts_product_id
    ON price_alerts(product_id);
"""

_PRODUCT_COLUMNS = (
    "id, user_id, source_url, name, brand, category, "
    "description, image_url, created_at, updated_at"
)


def normalize_url(raw_url: str) -> str:
    """Strip tracking/session query params to get a stable product URL."""
    parsed = urlparse(raw_url.strip())

    # Strip Amazon path-based tracking (e.g. /ref=sr_1_243)
    path = re.sub(r"/ref=[^/]*", "", parsed.path)

    params = parse_qs(parsed.query, keep_blank_values=True)
    cleaned = {
        k: v for k, v in params.items()
        if k.lower() not in _TRACKING_PARAMS
    }
    new_query = urlencode(cleaned, doseq=True) if cleaned else ""
    return urlunparse((
        parsed.scheme,
        parsed.netloc.lower(),
        path,
        parsed.params,
        new_query,
        "",  # drop fragment
    ))


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_product(row: tuple) -> Product:
    return Product(
        id=row[0],
        owner=row[1],
        source_url=row[2],
        name=row[3],
        brand=row[4],
        category=row[5],
        description=row[6],
        image_url=row[7],
        created_at=datetime.fromisoformat(row[8]),
        updated_at=datetime.fromisoformat(row[9]),
    )


def _row_to_record(row: tuple) -> PriceRecord:
    return PriceRecord(
        id=row[0],
        product_id=row[1],
        platform=row[2],
        platform_url=row[3],
        price=row[4],
        currency=row[5],
        in_stock=bool(row[6]),
        captured_at=datetime.fromisoformat(row[7]),
    )


class PriceStore:
    """SQLite-backed store for products, price records and alerts."""

    def __init__(self, db_path: Path | str) -> None:
        path = str(db_path)
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._lock = threading.Lock()
        if path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.executescript(_SCHEMA)
        logger.debug("PriceStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def _write(self, sql: str, params: tuple) -> sqlite3.Cursor:
        """Execute and commit one statement, mapping DB errors."""
        with self._lock:
            try:
                cur = self._conn.execute(sql, params)
                self._conn.commit()
                return cur
            except sqlite3.Error as exc:
                self._conn.rollback()
                logger.error("Write rejected: %s", exc, exc_info=True)
                raise PersistenceFailure(str(exc)) from exc

    def _read(self, sql: str, params: tuple) -> list[tuple]:
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    # ── Products ─────────────────────────────────────────

    def get_or_create_product(
        self,
        owner: str,
        source_url: str,
        name: str,
        brand: str = "",
        image_url: str = "",
        category: str = "",
    ) -> tuple[Product, bool]:
        """Return the owner's product for *source_url*, creating it if new.

        The ``(owner, source_url)`` uniqueness constraint makes this
        safe against concurrent submissions of the same URL.
        Returns the product and whether it was created.
        """
        url = normalize_url(source_url)
        ts = _now().isoformat()
        cur = self._write(
            "INSERT INTO products "
            "(id, user_id, source_url, name, brand, category, "
            " image_url, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(user_id, source_url) DO NOTHING",
            (
                str(uuid.uuid4()), owner, url, name, brand,
                category, image_url, ts, ts,
            ),
        )
        created = cur.rowcount == 1
        rows = self._read(
            f"SELECT {_PRODUCT_COLUMNS} FROM products "
            "WHERE user_id = ? AND source_url = ?",
            (owner, url),
        )
        product = _row_to_product(rows[0])
        if created:
            logger.info(
                "Created product %s for user %s", product.id, owner,
            )
        return product, created

    def update_product_details(
        self,
        product_id: str,
        brand: str = "",
        image_url: str = "",
    ) -> None:
        """Fill in missing brand/image and bump ``updated_at``."""
        self._write(
            "UPDATE products SET "
            "brand = CASE WHEN brand = '' THEN ? ELSE brand END, "
            "image_url = CASE WHEN image_url = '' THEN ? ELSE image_url END, "
            "updated_at = ? "
            "WHERE id = ?",
            (brand, image_url, _now().isoformat(), product_id),
        )

    def get_product(
        self, product_id: str, owner: str | None = None,
    ) -> Product | None:
        """Fetch one product; with *owner*, only if that user owns it."""
        if owner is None:
            rows = self._read(
                f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id = ?",
                (product_id,),
            )
        else:
            rows = self._read(
                f"SELECT {_PRODUCT_COLUMNS} FROM products "
                "WHERE id = ? AND user_id = ?",
                (product_id, owner),
            )
        return _row_to_product(rows[0]) if rows else None

    def list_products(self, owner: str | None = None) -> list[Product]:
        """All products (service path) or one owner's, oldest first."""
        if owner is None:
            rows = self._read(
                f"SELECT {_PRODUCT_COLUMNS} FROM products "
                "ORDER BY created_at, rowid",
                (),
            )
        else:
            rows = self._read(
                f"SELECT {_PRODUCT_COLUMNS} FROM products "
                "WHERE user_id = ? ORDER BY created_at, rowid",
                (owner,),
            )
        return [_row_to_product(r) for r in rows]

    def delete_product(self, product_id: str, owner: str) -> bool:
        """Delete an owner's product and, by cascade, its history."""
        cur = self._write(
            "DELETE FROM products WHERE id = ? AND user_id = ?",
            (product_id, owner),
        )
        deleted = cur.rowcount == 1
        if deleted:
            logger.info("Deleted product %s for user %s", product_id, owner)
        return deleted

    # ── Price history ────────────────────────────────────

    def add_price_record(
        self,
        product_id: str,
        platform: str,
        platform_url: str,
        price: float,
        currency: str = "INR",
        in_stock: bool = True,
        captured_at: datetime | None = None,
    ) -> str:
        """Append one price record and return its id."""
        record_id = str(uuid.uuid4())
        ts = (captured_at or _now()).isoformat()
        self._write(
            "INSERT INTO price_history "
            "(id, product_id, platform_name, platform_url, price, "
            " currency, in_stock, captured_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record_id, product_id, platform, platform_url,
                round(price, 2), currency, int(in_stock), ts,
            ),
        )
        logger.debug(
            "Recorded %s %.2f on %s for product %s",
            currency, price, platform, product_id,
        )
        return record_id

    def get_price_history(
        self,
        product_id: str,
        owner: str | None = None,
        limit: int | None = None,
    ) -> list[PriceRecord]:
        """Return a product's records, most recent first."""
        sql = (
            "SELECT h.id, h.product_id, h.platform_name, h.platform_url, "
            "       h.price, h.currency, h.in_stock, h.captured_at "
            "FROM price_history h "
            "JOIN products p ON p.id = h.product_id "
            "WHERE h.product_id = ?"
        )
        params: tuple = (product_id,)
        if owner is not None:
            sql += " AND p.user_id = ?"
            params += (owner,)
        sql += " ORDER BY h.captured_at DESC, h.rowid DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params += (limit,)
        return [_row_to_record(r) for r in self._read(sql, params)]

    def get_statistics(
        self, product_id: str, owner: str | None = None,
    ) -> PriceStatistics | None:
        """Compute min / max / avg / current price for a product."""
        latest = self.get_price_history(product_id, owner, limit=1)
        if not latest:
            return None
        row = self._read(
            "SELECT MIN(price), MAX(price), AVG(price), COUNT(id) "
            "FROM price_history WHERE product_id = ?",
            (product_id,),
        )[0]
        return PriceStatistics(
            current=latest[0].price,
            min=row[0],
            max=row[1],
            avg=round(row[2], 2),
            count=row[3],
        )

    # ── Alerts ───────────────────────────────────────────

    def add_alert(
        self, owner: str, product_id: str, target_price: float,
    ) -> PriceAlert:
        """Create a target-price alert on one of the owner's products.

        Raises:
            PersistenceFailure: If the product is not the owner's.
        """
        if self.get_product(product_id, owner) is None:
            raise PersistenceFailure(
                f"Product {product_id} not found for user {owner}"
            )
        alert = PriceAlert(
            id=str(uuid.uuid4()),
            owner=owner,
            product_id=product_id,
            target_price=round(target_price, 2),
            created_at=_now(),
        )
        self._write(
            "INSERT INTO price_alerts "
            "(id, user_id, product_id, target_price, is_active, created_at) "
            "VALUES (?, ?, ?, ?, 1, ?)",
            (
                alert.id, owner, product_id, alert.target_price,
                alert.created_at.isoformat(),
            ),
        )
        return alert

    def list_alerts(self, owner: str) -> list[PriceAlert]:
        """Return the owner's alerts, newest first."""
        rows = self._read(
            "SELECT id, user_id, product_id, target_price, is_active, "
            "       created_at "
            "FROM price_alerts WHERE user_id = ? "
            "ORDER BY created_at DESC, rowid DESC",
            (owner,),
        )
        return [
            PriceAlert(
                id=r[0],
                owner=r[1],
                product_id=r[2],
                target_price=r[3],
                is_active=bool(r[4]),
                created_at=datetime.fromisoformat(r[5]),
            )
            for r in rows
        ]
