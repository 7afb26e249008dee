"""Open-Meteo Weather API integration (free, no API key needed)"""
import logging
from datetime import date
from typing import Dict, Optional

import httpx

from ..config import settings
from ..schemas.response import WeatherForecast

logger = logging.getLogger(__name__)


class WeatherAPI:
    """
    Daily forecast for Ubatuba using Open-Meteo
    Docs: https://open-meteo.com/en/docs
    """

    BASE_URL = "https://api.open-meteo.com/v1/forecast"

    # WMO weather codes
    WEATHER_CODES = {
        0: "Céu limpo",
        1: "Predominantemente limpo",
        2: "Parcialmente nublado",
        3: "Nublado",
        45: "Neblina",
        48: "Neblina",
        51: "Garoa fraca",
        53: "Garoa moderada",
        55: "Garoa intensa",
        61: "Chuva fraca",
        63: "Chuva moderada",
        65: "Chuva forte",
        80: "Pancadas de chuva fracas",
        81: "Pancadas de chuva moderadas",
        82: "Pancadas de chuva fortes",
        95: "Tempestade",
        96: "Tempestade com granizo",
        99: "Tempestade com granizo forte",
    }

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.client = client or httpx.AsyncClient(timeout=10.0)

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()

    @classmethod
    def weathercode_to_description(cls, code: Optional[int]) -> str:
        return cls.WEATHER_CODES.get(code, "Condição desconhecida")

    async def get_forecast(self, day: Optional[date] = None) -> Optional[WeatherForecast]:
        """
        Get the Ubatuba forecast for one day

        Args:
            day: Date to forecast (defaults to today)

        Returns:
            WeatherForecast, or None when the service is unreachable or the
            date is outside the forecast window
        """
        day = day or date.today()
        params: Dict = {
            "latitude": settings.destination_latitude,
            "longitude": settings.destination_longitude,
            "daily": [
                "weathercode",
                "temperature_2m_max",
                "temperature_2m_min",
                "precipitation_probability_max",
                "windspeed_10m_max",
            ],
            "timezone": settings.destination_timezone,
            "start_date": day.isoformat(),
            "end_date": day.isoformat(),
        }

        try:
            response = await self.client.get(self.BASE_URL, params=params)
            response.raise_for_status()
            daily = response.json().get("daily", {})

            precipitation = daily.get("precipitation_probability_max") or [0]
            wind = daily.get("windspeed_10m_max") or [0]
            return WeatherForecast(
                date=daily["time"][0],
                description=self.weathercode_to_description(daily["weathercode"][0]),
                temperature_max=round(daily["temperature_2m_max"][0]),
                temperature_min=round(daily["temperature_2m_min"][0]),
                precipitation_probability=precipitation[0] or 0,
                wind_speed=round(wind[0] or 0),
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ Open-Meteo request failed: {type(e).__name__}: {str(e)}")
            return None
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"❌ Unexpected Open-Meteo response: {str(e)}")
            return None
