import math
from datetime import date
from typing import Optional

DELIVERY_BASE_FEE = 5000  # Rp per started distance unit
DELIVERY_DISTANCE_UNIT_KM = 2.0
EARTH_RADIUS_KM = 6371.0
MAX_RENTAL_RADIUS_KM = 20.0
AVERAGE_CITY_SPEED_KMH = 30.0


def rental_days(start_date: date, end_date: date) -> int:
    return (end_date - start_date).days


def rental_price(price_per_day: float, start_date: date, end_date: date) -> float:
    """Price for the whole rental period; a period shorter than a day is rejected."""
    days = rental_days(start_date, end_date)
    if days <= 0:
        raise ValueError("end_date must be after start_date")
    if price_per_day < 0:
        raise ValueError("price_per_day must not be negative")
    return price_per_day * days


def calculate_delivery_fee(distance_km: Optional[float]) -> float:
    """Rp 5.000 for every started 2 km; free when there is no distance."""
    if distance_km is None or distance_km <= 0:
        return 0.0
    return math.ceil(distance_km / DELIVERY_DISTANCE_UNIT_KM) * DELIVERY_BASE_FEE


def calculate_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def is_within_rental_radius(distance_km: float) -> bool:
    return distance_km <= MAX_RENTAL_RADIUS_KM


def format_distance(distance_km: float) -> str:
    """'500 m' under a kilometre, '1.5 km' under ten, '12 km' beyond."""
    if distance_km < 1:
        return f"{round(distance_km * 1000)} m"
    if distance_km < 10:
        return f"{distance_km:.1f} km"
    return f"{round(distance_km)} km"


def estimated_travel_time(distance_km: float) -> str:
    minutes = round(distance_km / AVERAGE_CITY_SPEED_KMH * 60)
    if minutes < 5:
        return "< 5 mins"
    if minutes < 60:
        return f"{minutes} mins"
    hours, minutes = divmod(minutes, 60)
    return f"{hours} hr {minutes} mins" if minutes else f"{hours} hr"


def format_idr(amount: float) -> str:
    """1250000 -> 'Rp 1.250.000'"""
    return "Rp " + f"{round(amount):,}".replace(",", ".")


def format_short_idr(amount: float) -> str:
    """Compact price label: 'Rp 3,2 juta' for millions, 'Rp 70.000' otherwise."""
    if amount >= 1_000_000:
        millions = amount / 1_000_000
        text = f"{millions:.0f}" if millions % 1 == 0 else f"{millions:.1f}"
        return f"Rp {text.replace('.', ',')} juta"
    return format_idr(amount)
