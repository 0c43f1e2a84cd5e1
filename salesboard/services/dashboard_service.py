"""
Dashboard service.
Today's sales and best sellers per location, each location using its own
timezone to decide what "today" means.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func

from salesboard.models import Location, Order, OrderState, LineItem
from salesboard.utils.timezone import local_day_range

TOP_ITEMS_LIMIT = 5


def get_today_sales(session, now: Optional[datetime] = None) -> List[dict]:
    """
    Completed-order totals for the local day of every location.

    Locations without sales today are included with zeros.

    Returns:
        list of dicts, highest total_sales first:
            - location_id: Square location id
            - location_name
            - total_sales: int (cents)
            - order_count: int
    """
    rows = []
    for location in session.query(Location).order_by(Location.name).all():
        start_dt, end_dt = local_day_range(location.timezone, now)

        total, count = session.query(
            func.coalesce(func.sum(Order.total_amount), 0),
            func.count(Order.id)
        ).filter(
            Order.location_id == location.square_location_id,
            Order.state == OrderState.COMPLETED,
            Order.date >= start_dt,
            Order.date < end_dt
        ).one()

        rows.append({
            'location_id': location.square_location_id,
            'location_name': location.name,
            'total_sales': int(total or 0),
            'order_count': int(count or 0),
        })

    rows.sort(key=lambda r: r['total_sales'], reverse=True)
    return rows


def get_top_items(session, limit: int = TOP_ITEMS_LIMIT, now: Optional[datetime] = None) -> List[dict]:
    """
    Best-selling items by revenue for the local day of every location.

    Returns:
        list of dicts ordered by location then rank:
            - location_id, location_name
            - item_name
            - total_quantity: int
            - total_revenue: int (cents)
            - rank_position: 1..limit
    """
    rows = []
    locations = session.query(Location).order_by(Location.square_location_id).all()

    for location in locations:
        start_dt, end_dt = local_day_range(location.timezone, now)

        total_revenue = func.coalesce(func.sum(LineItem.total_price_amount), 0)
        items = (
            session.query(
                LineItem.name.label('item_name'),
                func.coalesce(func.sum(LineItem.quantity), 0).label('total_quantity'),
                total_revenue.label('total_revenue')
            )
            .join(Order, Order.id == LineItem.order_id)
            .filter(
                Order.location_id == location.square_location_id,
                Order.state == OrderState.COMPLETED,
                Order.date >= start_dt,
                Order.date < end_dt
            )
            .group_by(LineItem.name)
            .order_by(total_revenue.desc(), LineItem.name)
            .limit(limit)
            .all()
        )

        for rank, item in enumerate(items, start=1):
            rows.append({
                'location_id': location.square_location_id,
                'location_name': location.name,
                'item_name': item.item_name,
                'total_quantity': int(item.total_quantity or 0),
                'total_revenue': int(item.total_revenue or 0),
                'rank_position': rank,
            })

    return rows
