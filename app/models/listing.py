from sqlalchemy import Column, Integer, String, Float, DateTime, Text, Boolean, JSON, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


LISTING_STATUS_JUST_LISTED = "just_listed"
LISTING_STATUS_SOLD = "sold"


class Listing(Base):
    """
    Scraped property listing, keyed by the source's zpid.
    Column names follow the lowercase scraper schema.
    """
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, index=True)
    zpid = Column(Text, unique=True, index=True, nullable=False)
    status = Column(String(20), nullable=False, default=LISTING_STATUS_JUST_LISTED, index=True)

    # Run tracking
    lastrunid = Column(String(64), nullable=True, index=True)
    lastseenat = Column(DateTime(timezone=True), nullable=True, index=True)
    lastcity = Column(Text, nullable=True)
    lastpage = Column(Integer, nullable=True)
    isjustlisted = Column(Boolean, nullable=True)

    city = Column(Text, nullable=True)
    region = Column(Text, nullable=True)

    rawhomestatuscd = Column(Text, nullable=True)
    marketingstatussimplifiedcd = Column(Text, nullable=True)
    imgsrc = Column(Text, nullable=True)
    hasimage = Column(Boolean, nullable=True)
    detailurl = Column(Text, nullable=True)
    statustype = Column(Text, nullable=True)
    statustext = Column(Text, nullable=True)
    countrycurrency = Column(Text, nullable=True)

    price = Column(Text, nullable=True)
    unformattedprice = Column(Float, nullable=True)

    address = Column(Text, nullable=True)
    addressstreet = Column(Text, nullable=True)
    addresszipcode = Column(Text, nullable=True)
    isundisclosedaddress = Column(Boolean, nullable=True)
    addresscity = Column(Text, nullable=True, index=True)
    addressstate = Column(Text, nullable=True)

    beds = Column(Integer, nullable=True)
    baths = Column(Integer, nullable=True)
    area = Column(Integer, nullable=True)

    latlong = Column(JSON, nullable=True)
    hdpdata = Column(JSON, nullable=True)
    carouselphotos = Column(JSON, nullable=True)
    carousel_photos_composable = Column(JSON, nullable=True)

    iszillowowned = Column(Boolean, nullable=True)
    issaved = Column(Boolean, nullable=True)
    isuserclaimingowner = Column(Boolean, nullable=True)
    isuserconfirmedclaim = Column(Boolean, nullable=True)
    shouldshowzestimateasprice = Column(Boolean, nullable=True)
    has3dmodel = Column(Boolean, nullable=True)
    hasvideo = Column(Boolean, nullable=True)
    ispropertyresultcdp = Column(Boolean, nullable=True)

    flexfieldtext = Column(Text, nullable=True)
    contenttype = Column(Text, nullable=True)
    pgapt = Column(Text, nullable=True)
    sgapt = Column(Text, nullable=True)
    list = Column(Boolean, nullable=True)
    info1string = Column(Text, nullable=True)
    brokername = Column(Text, nullable=True)
    openhousedescription = Column(Text, nullable=True)
    buildername = Column(Text, nullable=True)
    lotareastring = Column(Text, nullable=True)
    providerlistingid = Column(Text, nullable=True)
    streetviewmetadataurl = Column(Text, nullable=True)
    streetviewurl = Column(Text, nullable=True)

    openhousestartdate = Column(Text, nullable=True)
    openhouseenddate = Column(Text, nullable=True)
    availability_date = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    reveals = relationship("ListingReveal", back_populates="listing")

    def __repr__(self):
        return f"<Listing(id={self.id}, zpid={self.zpid}, status={self.status}, city={self.addresscity})>"


Index("ix_listings_unformattedprice", Listing.unformattedprice)
