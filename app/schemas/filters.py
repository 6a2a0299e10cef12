from datetime import date
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CustomDateRange(BaseModel):
    """Inclusive calendar range picked in the date filter"""
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["custom"] = "custom"
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    label: Optional[str] = None


class ListingFilters(BaseModel):
    """Filter object built by the dashboard; rebuilt on every request"""
    model_config = ConfigDict(populate_by_name=True)

    city_name: Optional[Union[str, List[str]]] = None
    search_term: Optional[str] = Field(default=None, alias="searchTerm")
    min_price: Optional[float] = Field(default=None, alias="minPrice")
    max_price: Optional[float] = Field(default=None, alias="maxPrice")
    beds: Optional[float] = None
    baths: Optional[float] = None
    property_type: Optional[str] = Field(default=None, alias="propertyType")
    min_sqft: Optional[float] = Field(default=None, alias="minSqft")
    max_sqft: Optional[float] = Field(default=None, alias="maxSqft")
    date_range: Optional[Union[CustomDateRange, str]] = Field(default=None, alias="dateRange")

    @field_validator("date_range", mode="before")
    @classmethod
    def coerce_preset(cls, v):
        # Presets arrive as "7" or 7 depending on the client
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    def cities(self) -> List[str]:
        if not self.city_name:
            return []
        if isinstance(self.city_name, str):
            return [self.city_name]
        return [c for c in self.city_name if c]

    def applied(self) -> dict:
        """Non-empty filters, keyed the way the dashboard names them"""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
