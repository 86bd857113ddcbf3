"""Document base class for Firestore operations."""

from typing import Type, Optional, TypeVar, Generic
from pydantic import BaseModel
from google.cloud.firestore_v1.collection import CollectionReference

from sweetshop.apis.Db import Db
from sweetshop.exceptions import NotFoundError, ProjectError

DocLike = TypeVar('DocLike', bound=BaseModel)


def remove_none_values(d):
    """Recursively remove None values from dictionaries."""
    if isinstance(d, dict):
        return {k: remove_none_values(v) for k, v in d.items() if v is not None}
    elif isinstance(d, list):
        return [remove_none_values(v) for v in d if v is not None]
    else:
        return d


def ignore_none(func):
    """Decorator to remove None values from the data argument."""

    def wrapper(self, data, *args, **kwargs):
        return func(self, remove_none_values(data), *args, **kwargs)

    return wrapper


class DocumentBase(Generic[DocLike]):
    """One Firestore document validated through a pydantic model.

    Subclasses set ``pydantic_model`` and either ``collection_key`` (a key of
    ``Db.collections``) or ``collection_ref`` before calling ``__init__``.
    ``id_field`` names the model field that carries the document id.
    """
    collection_ref: CollectionReference = None  # type: ignore
    collection_key: Optional[str] = None
    id_field: str = "id"
    _doc: Optional[DocLike] = None
    _db: Optional[Db] = None
    pydantic_model: Type[DocLike] = None  # type: ignore

    @property
    def db(self) -> Db:
        if self._db is None:
            self._db = Db.get_instance()
        return self._db

    def __init__(self, id: Optional[str], doc: dict | None = None):
        """
        Initialize the document.
        :param id: Id of the document. A falsy id with a doc allocates a new id.
        :param doc: Document data; when None the document is fetched and must exist.
        """
        if self.collection_ref is None and self.collection_key:
            self.collection_ref = self.db.collections[self.collection_key]
        if not self.pydantic_model:
            raise ProjectError("You forgot to set pydantic_model.", code="INTERNAL")
        if self.collection_ref is None:
            raise ProjectError("You forgot to set collection_ref.", code="INTERNAL")

        self.id = id or self.collection_ref.document().id

        if doc is None:
            self._init_doc()  # fetches the document from Firestore with provided ID
        else:
            self._doc = self._build(doc)

    def _build(self, data: dict) -> DocLike:
        return self.pydantic_model(**{**data, self.id_field: self.id})

    def _init_doc(self):
        snap = self.collection_ref.document(self.id).get()

        if not snap.exists:
            raise NotFoundError(self.__class__.__name__, self.id)

        self._doc = self._build(snap.to_dict() or {})

    @classmethod
    def find(cls, id: str):
        """Fetch the document, or return None when it does not exist."""
        try:
            return cls(id)
        except NotFoundError:
            return None

    @property
    def doc(self) -> DocLike:
        if self._doc is not None:
            return self._doc
        raise ProjectError("Document is None", code="INTERNAL")

    def create_doc(self, data: Optional[dict] = None, merge: bool = False, server_timestamps: tuple = ()):
        """Write the document with server-side createdAt/lastUpdatedAt.

        :param data: Document data; defaults to the current model.
        :param merge: Merge into an existing document instead of replacing it.
        :param server_timestamps: Extra fields to set to the server time.
        """
        payload = data if data is not None else self.doc.model_dump(exclude_none=True)
        if data is not None:
            self._doc = self._build(data)
        now = self.db.server_timestamp
        new_data = {
            **payload,
            self.id_field: self.id,
            "createdAt": now,
            "lastUpdatedAt": now,
        }
        for field in server_timestamps:
            new_data[field] = now
        self.collection_ref.document(self.id).set(new_data, merge=merge)

    @ignore_none
    def update_doc(self, data: dict):
        data["lastUpdatedAt"] = self.db.server_timestamp
        self.collection_ref.document(self.id).update(data)
        self._apply_local(data)

    def _apply_local(self, data: dict):
        if self._doc is None:
            return
        current = self._doc.model_dump()
        current.update({k: v for k, v in data.items() if k not in ("createdAt", "lastUpdatedAt")})
        self._doc = self._build(current)

    def get_doc_ref(self):
        return self.collection_ref.document(self.id)
