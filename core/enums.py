"""Enumerations shared across the gallery domain model.

Numeric values are stable because they are persisted by stores and embedded
in configuration (for example the metadata display settings).
"""

from __future__ import annotations

from enum import Enum, IntEnum

INT_MIN = -2147483648


class GalleryObjectType(IntEnum):
    """Kind of gallery object; also used as a filter when listing children."""

    NotSpecified = 0
    All = 1
    MediaObject = 2
    Album = 3
    Image = 4
    Audio = 5
    Video = 6
    Generic = 7
    External = 8
    Unknown = 9
    None_ = 10

    def matches(self, other: GalleryObjectType) -> bool:
        """Return True when an object of type `other` passes this filter."""
        if self in (GalleryObjectType.All, GalleryObjectType.NotSpecified):
            return True
        if self is GalleryObjectType.MediaObject:
            return other is not GalleryObjectType.Album
        return self is other


class DisplayObjectType(IntEnum):
    Unknown = 0
    Thumbnail = 1
    Optimized = 2
    Original = 3
    External = 4


class MimeTypeCategory(IntEnum):
    NotSet = 0
    Other = 1
    Image = 2
    Video = 3
    Audio = 4

    @classmethod
    def parse(cls, text: str | None) -> MimeTypeCategory:
        """Map a major type (e.g. "image") to a category.

        Blank input yields NotSet; unrecognized input yields Other.
        """
        if not text or not text.strip():
            return cls.NotSet
        value = text.strip().lower()
        for member in cls:
            if member.name.lower() == value:
                return member
        return cls.Other


class PropertyEditorMode(IntEnum):
    NotSet = 0
    NotEditable = 1
    PlainTextEditor = 2
    TinyMCEHtmlEditor = 3


class Orientation(IntEnum):
    """EXIF orientation (tag 274) of an original file."""

    NotInitialized = 0
    Normal = 1
    Mirrored = 2
    Rotated180 = 3
    Flipped = 4
    FlippedAndRotated90 = 5
    Rotated270 = 6
    FlippedAndRotated270 = 7
    Rotated90 = 8
    None_ = 65535


class FlipAxis(Enum):
    NONE = "None"
    X = "X"
    Y = "Y"


class RotateFlip(IntEnum):
    """Rotation and flip to apply to a media asset.

    Members are named ``Rotate<degrees>Flip<axis>``; rotation is clockwise.
    """

    NotSpecified = 0
    Rotate0FlipNone = 1
    Rotate0FlipX = 2
    Rotate0FlipY = 3
    Rotate90FlipNone = 4
    Rotate90FlipX = 5
    Rotate90FlipY = 6
    Rotate180FlipNone = 7
    Rotate180FlipX = 8
    Rotate180FlipY = 9
    Rotate270FlipNone = 10
    Rotate270FlipX = 11
    Rotate270FlipY = 12

    @property
    def degrees(self) -> int:
        if self is RotateFlip.NotSpecified:
            return 0
        return ((self.value - 1) // 3) * 90

    @property
    def flip(self) -> FlipAxis:
        if self is RotateFlip.NotSpecified:
            return FlipAxis.NONE
        return (FlipAxis.NONE, FlipAxis.X, FlipAxis.Y)[(self.value - 1) % 3]

    @property
    def is_identity(self) -> bool:
        return self in (RotateFlip.NotSpecified, RotateFlip.Rotate0FlipNone)

    @classmethod
    def compose(cls, degrees: int, flip: FlipAxis) -> RotateFlip:
        """Build the member for `degrees` (any multiple of 90) and `flip`."""
        quarter = (degrees % 360) // 90
        offset = (FlipAxis.NONE, FlipAxis.X, FlipAxis.Y).index(flip)
        return cls(quarter * 3 + offset + 1)


class MetadataItemName(IntEnum):
    NotSpecified = INT_MIN
    AudioBitRate = 0
    AudioFormat = 1
    Author = 2
    BitRate = 3
    CameraModel = 4
    Comment = 5
    ColorRepresentation = 6
    Copyright = 7
    DatePictureTaken = 8
    Description = 9
    Dimensions = 10
    Duration = 11
    EquipmentManufacturer = 12
    ExposureCompensation = 13
    ExposureProgram = 14
    ExposureTime = 15
    FlashMode = 16
    FNumber = 17
    FocalLength = 18
    Height = 19
    HorizontalResolution = 20
    IsoSpeed = 21
    Tags = 22
    LensAperture = 23
    LightSource = 24
    MeteringMode = 25
    Rating = 26
    SubjectDistance = 27
    Subject = 28
    Title = 29
    VerticalResolution = 30
    VideoBitRate = 31
    VideoFormat = 32
    Width = 33
    FileName = 34
    FileNameWithoutExtension = 35
    FileSizeKb = 36
    DateFileCreated = 37
    DateFileCreatedUtc = 38
    DateFileLastModified = 39
    DateFileLastModifiedUtc = 40
    Caption = 41
    People = 42
    Orientation = 43
    GpsLocation = 101
    GpsLocationWithMapLink = 102
    GpsLatitude = 103
    GpsLongitude = 104
    GpsDestLocation = 105
    GpsDestLocationWithMapLink = 106
    GpsDestLatitude = 107
    GpsDestLongitude = 108
    GpsAltitude = 109
    GpsVersion = 110
    DateAdded = 111
    HtmlSource = 112
    RatingCount = 113
    IptcByline = 1001
    IptcBylineTitle = 1002
    IptcCaption = 1003
    IptcCity = 1004
    IptcCopyrightNotice = 1005
    IptcCountryPrimaryLocationName = 1006
    IptcCredit = 1007
    IptcDateCreated = 1008
    IptcHeadline = 1009
    IptcKeywords = 1010
    IptcObjectName = 1011
    IptcOriginalTransmissionReference = 1012
    IptcProvinceState = 1013
    IptcRecordVersion = 1014
    IptcSource = 1015
    IptcSpecialInstructions = 1016
    IptcSublocation = 1017
    IptcWriterEditor = 1018
    Custom1 = 2000
    Custom2 = 2001
    Custom3 = 2002
    Custom4 = 2003
    Custom5 = 2004
    Custom6 = 2005
    Custom7 = 2006
    Custom8 = 2007
    Custom9 = 2008
    Custom10 = 2009
    Custom11 = 2010
    Custom12 = 2011
    Custom13 = 2012
    Custom14 = 2013
    Custom15 = 2014
    Custom16 = 2015
    Custom17 = 2016
    Custom18 = 2017
    Custom19 = 2018
    Custom20 = 2019

    @classmethod
    def from_name(cls, name: str) -> MetadataItemName:
        """Return the member called `name`, or NotSpecified when unknown."""
        try:
            return cls[name]
        except KeyError:
            return cls.NotSpecified
