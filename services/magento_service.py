from __future__ import annotations

import logging

import requests

from config import Config


logger = logging.getLogger(__name__)


class DirectoryUnavailable(Exception):
	"""The customer directory could not give an answer."""


class MagentoService:

	def __init__(self, base_url: str | None = None, token: str | None = None, timeout: float | None = None):
		self.base_url = (base_url if base_url is not None else Config.MAGENTO_API_URL).rstrip("/")
		self.token = token if token is not None else Config.MAGENTO_API_TOKEN
		self.timeout = timeout if timeout is not None else Config.MAGENTO_TIMEOUT_SECONDS

	@property
	def enabled(self) -> bool:
		return bool(self.base_url) and not Config.DEMO_MODE

	def find_customer(self, email: str) -> dict | None:
		"""First directory customer with this email, or None if there is none.

		Raises DirectoryUnavailable on transport failures and non-200 answers so
		callers can tell "no such customer" apart from "could not ask".
		"""
		params = {
			"searchCriteria[filterGroups][0][filters][0][field]": "email",
			"searchCriteria[filterGroups][0][filters][0][value]": email,
			"searchCriteria[filterGroups][0][filters][0][conditionType]": "eq",
		}
		headers = {
			"Authorization": f"Bearer {self.token}",
			"Content-Type": "application/json",
		}
		try:
			resp = requests.get(
				f"{self.base_url}/customers/search",
				params=params,
				headers=headers,
				timeout=self.timeout,
			)
		except requests.RequestException as e:
			raise DirectoryUnavailable(str(e)) from e
		if resp.status_code != 200:
			raise DirectoryUnavailable(f"Magento API returned {resp.status_code}")
		try:
			data = resp.json()
		except ValueError as e:
			raise DirectoryUnavailable("Magento API returned invalid JSON") from e
		if not isinstance(data, dict):
			raise DirectoryUnavailable("Magento API returned an unexpected payload")
		items = data.get("items") or []
		return items[0] if items else None


def profile_from_customer(email: str, customer: dict | None) -> dict:
	"""Player profile fields derived from a directory customer record."""
	customer = customer or {}
	first_name = customer.get("firstname") or email.split("@")[0]
	last_name = customer.get("lastname") or ""
	phone = next(
		(a.get("value") for a in customer.get("custom_attributes") or [] if a.get("attribute_code") == "mobilenumber"),
		None,
	)
	addresses = customer.get("addresses") or []
	address = addresses[0] if addresses else {}
	region = address.get("region")
	return {
		"email": email,
		"magentoCustomerId": str(customer["id"]) if customer.get("id") is not None else None,
		"firstName": first_name,
		"lastName": last_name,
		"displayName": f"Dr. {first_name} {last_name}".strip(),
		"phone": phone,
		"city": address.get("city"),
		"state": region.get("region") if isinstance(region, dict) else None,
	}


magento_service = MagentoService()
