from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Package(models.Model):
    """Tour package offered on the marketplace. Prices are in major currency units."""

    title = models.CharField(max_length=100)
    description = models.TextField()
    image = models.URLField(max_length=500)
    start_point = models.CharField(max_length=200)
    destinations = models.JSONField(default=list)
    duration = models.CharField(max_length=50)
    price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    rating = models.DecimalField(
        max_digits=2,
        decimal_places=1,
        default=4.5,
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    active = models.BooleanField(default=True)
    featured = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-featured", "title"]

    def __str__(self):
        return self.title
