"""Wishlist synchronizer between the local wishlist store and Firestore."""

from typing import List, Optional, Union

from sweetshop.apis.Db import Db
from sweetshop.config.loader import (
    AppConfig,
    get_placeholder_image,
    get_wishlist_schema,
    should_migrate_legacy_wishlist,
)
from sweetshop.exceptions import NotSignedInError, PartialWriteError, ValidationError
from sweetshop.models.firestore_types import ProductDoc, WishlistItemDoc
from sweetshop.store.session import Session
from sweetshop.store import wishlist_slice
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)

# Firestore rejects batches with more than 500 writes
BATCH_LIMIT = 500


class WishlistService:
    """Mirrors users/{uid}/wishlist into the session's wishlist store.

    Every mutation writes remotely first and updates local state only after
    the write succeeded. Results that arrive after the signed-in user changed
    are dropped.
    """

    def __init__(self, session: Session, config: Optional[AppConfig] = None, origin: str = ""):
        """
        Args:
            session: Session holding the wishlist store
            config: Application configuration
            origin: Storefront origin used to absolutize relative image paths
        """
        self.session = session
        self.config = config or {}
        self.origin = origin.rstrip("/")
        self.db = Db.get_instance()

    @property
    def store(self):
        return self.session.wishlist

    def _collection(self, uid: str):
        if get_wishlist_schema(self.config) == "legacy":
            return self.db.collections["legacyWishlist"](uid)
        return self.db.collections["wishlist"](uid)

    def _require_uid(self, message: str) -> str:
        uid = self.session.uid
        if not uid:
            raise NotSignedInError(message)
        return uid

    def resolve_image(self, product: dict) -> str:
        image = product.get("image") or product.get("imageUrl")
        if not image:
            return get_placeholder_image(self.config)
        if image.startswith("http://") or image.startswith("https://"):
            return image
        if not image.startswith("/"):
            image = f"/{image}"
        return f"{self.origin}{image}"

    def load(self) -> List[WishlistItemDoc]:
        """Replace the local wishlist with the remote one for the signed-in user."""
        uid = self.session.uid
        if not uid:
            return []

        generation = self.session.generation
        self.store.dispatch(wishlist_slice.set_loading(True))
        if get_wishlist_schema(self.config) == "users" and should_migrate_legacy_wishlist(self.config):
            try:
                self.migrate_legacy(uid)
            except Exception as e:
                # legacy path may be locked down by rules once migrated
                logger.warning(f"Legacy wishlist migration skipped for {uid}: {Db.translate_error(e, 'wishlists')}")

        try:
            snaps = self._collection(uid).get()
        except Exception as e:
            error = Db.translate_error(e, "wishlist")
            if self.session.is_current(generation):
                self.store.dispatch(wishlist_slice.set_error(str(error)))
            raise error

        items = []
        for snap in snaps:
            try:
                items.append(WishlistItemDoc(**{**(snap.to_dict() or {}), "id": snap.id}))
            except ValueError as e:
                logger.warning(f"Skipping malformed wishlist item {snap.id} for {uid}: {e}")

        if not self.session.is_current(generation):
            logger.info(f"Discarding wishlist load for {uid}, session changed")
            return items

        self.store.dispatch(wishlist_slice.set_wishlist_items(items))
        logger.info(f"Loaded {len(items)} wishlist items for {uid}")
        return items

    def add(self, product: Union[dict, ProductDoc]) -> WishlistItemDoc:
        """Save a product to the wishlist.

        Raises:
            NotSignedInError: If nobody is signed in
            ValidationError: If the product has no id
        """
        uid = self._require_uid("Please sign in to add items to your wishlist.")
        data = product.model_dump() if isinstance(product, ProductDoc) else dict(product or {})
        product_id = data.get("id")
        if not product_id:
            raise ValidationError("Invalid product data.", field="id")

        item = WishlistItemDoc(
            id=product_id,
            name=data.get("name"),
            price=data.get("price"),
            image=self.resolve_image(data),
        )

        generation = self.session.generation
        try:
            self._collection(uid).document(product_id).set({
                **item.model_dump(exclude={"addedAt"}),
                "addedAt": self.db.server_timestamp,
            })
        except Exception as e:
            raise Db.translate_error(e, "wishlist")

        if not self.session.is_current(generation):
            logger.info(f"Discarding wishlist add of {product_id}, session changed")
            return item

        self.store.dispatch(wishlist_slice.add_to_wishlist(item))
        logger.info(f"Added {product_id} to wishlist of {uid}")
        return item

    def remove(self, product_id: str) -> bool:
        """Delete one item. Does nothing when signed out.

        Returns:
            True if the item was removed remotely
        """
        uid = self.session.uid
        if not uid or not product_id:
            return False

        generation = self.session.generation
        try:
            self._collection(uid).document(product_id).delete()
        except Exception as e:
            raise Db.translate_error(e, "wishlist")

        if self.session.is_current(generation):
            self.store.dispatch(wishlist_slice.remove_from_wishlist(product_id))
        logger.info(f"Removed {product_id} from wishlist of {uid}")
        return True

    def clear(self) -> int:
        """Delete every remote item, then clear local state.

        Deletes are committed in batches. If any batch fails the local
        wishlist is left as it was.

        Returns:
            Number of remote items deleted
        """
        uid = self.session.uid
        if not uid:
            return 0

        generation = self.session.generation
        try:
            snaps = list(self._collection(uid).get())
        except Exception as e:
            raise Db.translate_error(e, "wishlist")

        deleted: List[str] = []
        for start in range(0, len(snaps), BATCH_LIMIT):
            chunk = snaps[start:start + BATCH_LIMIT]
            batch = self.db.batch()
            for snap in chunk:
                batch.delete(snap.reference)
            try:
                batch.commit()
            except Exception as e:
                error = Db.translate_error(e, "wishlist")
                if not deleted:
                    raise error
                raise PartialWriteError(
                    "clear_wishlist",
                    completed=deleted,
                    failed=chunk[0].reference.path,
                    cause=str(error),
                )
            deleted.extend(snap.reference.path for snap in chunk)

        if self.session.is_current(generation):
            self.store.dispatch(wishlist_slice.clear_wishlist())
        logger.info(f"Cleared {len(deleted)} wishlist items for {uid}")
        return len(deleted)

    def is_in_wishlist(self, product_id: str) -> bool:
        """Local lookup only; never reads Firestore."""
        return wishlist_slice.is_in_wishlist(self.store.state, product_id)

    def toggle(self, product: Union[dict, ProductDoc]) -> bool:
        """Add the product if absent, remove it otherwise.

        Returns:
            True if the product is in the wishlist afterwards
        """
        product_id = product.id if isinstance(product, ProductDoc) else (product or {}).get("id")
        if product_id and self.is_in_wishlist(product_id):
            self.remove(product_id)
            return False
        self.add(product)
        return True

    def migrate_legacy(self, uid: str) -> int:
        """Move items from wishlists/{uid}/items into users/{uid}/wishlist.

        Items already present at the new path are kept as they are. Each legacy
        document is deleted only after its copy exists.

        Returns:
            Number of legacy documents migrated
        """
        legacy = list(self.db.collections["legacyWishlist"](uid).get())
        if not legacy:
            return 0

        target = self.db.collections["wishlist"](uid)
        moved = 0
        for snap in legacy:
            ref = target.document(snap.id)
            if not ref.get().exists:
                data = snap.to_dict() or {}
                data["id"] = snap.id
                data.setdefault("addedAt", self.db.server_timestamp)
                ref.set(data)
            snap.reference.delete()
            moved += 1

        logger.info(f"Migrated {moved} legacy wishlist items for {uid}")
        return moved
