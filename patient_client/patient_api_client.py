"""
HTTP client for the Patient Records API.
Mirrors what the browser client sends: multipart forms with the patient
fields and an optional image file.
"""
import httpx
import logging
from datetime import date
from typing import Optional, List, Dict, Any, Tuple, Union

from patient_client.config import PATIENT_SVC_API_TIMEOUT, PATIENT_SVC_API_URL

logger = logging.getLogger(__name__)

# (filename, content, content_type)
ImageFile = Tuple[str, bytes, str]


class PatientAPIClient:
    """Client for the Patient Records REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or PATIENT_SVC_API_URL
        if not self.base_url:
            raise ValueError("PATIENT_SVC_API_URL must be set in config")

        # Remove trailing slash
        self.base_url = self.base_url.rstrip("/")
        self.timeout = timeout or PATIENT_SVC_API_TIMEOUT
        self._transport = transport

    async def _request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Any:
        """
        Make HTTP request to API.

        Raises:
            ValueError: For HTTP error responses (message carries status and error text)
            ConnectionError: For connection/request errors
        """
        url = f"{self.base_url}{endpoint}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            error_msg = f"API error {e.response.status_code}: {_error_text(e.response)}"
            logger.error(error_msg)
            raise ValueError(error_msg) from e
        except httpx.RequestError as e:
            error_msg = f"Request error: {e}"
            logger.error(error_msg)
            raise ConnectionError(error_msg) from e

    # Patient methods
    async def get_patients(self) -> List[Dict[str, Any]]:
        """
        Get all patients.

        Returns:
            List of patient dicts (id, firstName, lastName, birthday,
            description, primaryDoctor, imageUrl)

        Raises:
            ConnectionError: If connection fails
        """
        return await self._request("GET", "/patients")

    async def get_patient(self, patient_id: int) -> Dict[str, Any]:
        """
        Get one patient.

        Raises:
            ValueError: If the patient does not exist or API error
            ConnectionError: If connection fails
        """
        return await self._request("GET", f"/patients/{patient_id}")

    async def add_patient(
        self,
        first_name: str,
        last_name: str,
        birthday: Union[date, str],
        description: str,
        primary_doctor: str,
        image: Optional[ImageFile] = None,
    ) -> Dict[str, Any]:
        """
        Add a new patient.

        Args:
            image: Optional (filename, content, content_type) tuple

        Returns:
            Dict with message and patientId

        Raises:
            ValueError: If validation fails or API error
            ConnectionError: If connection fails
        """
        data = _form_fields(first_name, last_name, birthday, description, primary_doctor)
        return await self._request("POST", "/patients", data=data, files=_image_files(image))

    async def update_patient(
        self,
        patient_id: int,
        first_name: str,
        last_name: str,
        birthday: Union[date, str],
        description: str,
        primary_doctor: str,
        image: Optional[ImageFile] = None,
    ) -> Dict[str, Any]:
        """
        Replace a patient's fields, and its image when one is given.

        Raises:
            ValueError: If the patient does not exist, validation fails or API error
            ConnectionError: If connection fails
        """
        data = _form_fields(first_name, last_name, birthday, description, primary_doctor)
        return await self._request(
            "PUT", f"/patients/{patient_id}", data=data, files=_image_files(image)
        )

    async def delete_patient(self, patient_id: int) -> Dict[str, Any]:
        """
        Delete a patient.

        Raises:
            ValueError: If the patient does not exist or API error
            ConnectionError: If connection fails
        """
        return await self._request("DELETE", f"/patients/{patient_id}")


def _form_fields(
    first_name: str,
    last_name: str,
    birthday: Union[date, str],
    description: str,
    primary_doctor: str,
) -> Dict[str, str]:
    return {
        "firstName": first_name,
        "lastName": last_name,
        "birthday": birthday.isoformat() if isinstance(birthday, date) else birthday,
        "description": description,
        "primaryDoctor": primary_doctor,
    }


def _image_files(image: Optional[ImageFile]) -> Optional[Dict[str, ImageFile]]:
    # Without an image the form is sent urlencoded, which the API accepts too
    if image is None:
        return None
    return {"image": image}


def _error_text(response: httpx.Response) -> str:
    """Prefer the service's {"error": ...} message over the raw body."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and "error" in body:
        return str(body["error"])
    return response.text


# Global client instance
_client_instance: Optional[PatientAPIClient] = None


def get_patient_api_client() -> PatientAPIClient:
    """Get or create the global API client instance."""
    global _client_instance
    if _client_instance is None:
        _client_instance = PatientAPIClient()
    return _client_instance
