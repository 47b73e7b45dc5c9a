# delivery_advisor/core/packaging.py
"""
Packaging analysis:
    - Item weight from product type, print size and material density
    - Parcel size with protective padding
    - Volumetric and shipping weight
    - Packaging requirements and their cost
"""
from typing import List

from .. import domain
from ..config import logger
from ..errors import EmptyOrderError
from ..models import CartProject, ContentType, Dimensions, PackagingDetails, PackagingRequirements


class PackagingAnalyzer:
    """Derives the physical profile of a parcel from the ordered projects."""

    def analyze(self, projects: List[CartProject]) -> PackagingDetails:
        """
        Builds the packaging profile for a set of projects.

        All items are stacked in a single box: the box takes the largest print
        width and height, and the depths of every copy are added up.

        Args:
            projects: The projects of the order. Must not be empty.

        Returns:
            The packaging details, including shipping weight and packaging cost.
        """
        if not projects:
            raise EmptyOrderError("Cannot build a parcel for an order without projects.")

        total_weight = 0.0
        max_width, max_height = 0.0, 0.0
        total_depth = 0.0
        total_value = 0.0
        content_types: List[ContentType] = []

        for project in projects:
            depth_mm = project.depth or domain.DEFAULT_ITEM_DEPTH_MM
            max_width = max(max_width, project.width)
            max_height = max(max_height, project.height)
            total_depth += (depth_mm / 10) * project.quantity

            total_weight += self.calculate_item_weight(project) * project.quantity
            total_value += project.current_price

            content_types.append(ContentType(
                type=domain.CONTENT_MATERIALS.get(project.product_type, project.product_type),
                quantity=project.quantity,
                is_fragile=project.product_type in domain.FRAGILE_PRODUCTS,
                requires_special_handling=project.product_type in domain.SPECIAL_HANDLING_PRODUCTS,
                value=project.current_price,
            ))

        has_fragile = any(content.is_fragile for content in content_types)
        padding = domain.FRAGILE_PADDING_CM if has_fragile else domain.STANDARD_PADDING_CM
        final_width = max_width + padding * 2
        final_height = max_height + padding * 2
        final_depth = total_depth + padding * 2

        volumetric_weight = (final_width * final_height * final_depth) / domain.VOLUMETRIC_DIVISOR

        if has_fragile:
            reinforcement = 'heavy'
        elif total_weight > domain.MEDIUM_REINFORCEMENT_WEIGHT_KG:
            reinforcement = 'medium'
        else:
            reinforcement = 'light'

        requirements = PackagingRequirements(
            reinforcement=reinforcement,
            fragile_stickers=has_fragile,
            moisture_protection=any(content.type == 'paper' for content in content_types),
            temperature_control=False,
        )

        packaging = PackagingDetails(
            dimensions=Dimensions(width=final_width, height=final_height, depth=final_depth, weight=total_weight),
            content_types=content_types,
            packaging_requirements=requirements,
            volumetric_weight=volumetric_weight,
            shipping_weight=max(total_weight, volumetric_weight),
            packaging_cost=self.calculate_packaging_cost(requirements, total_value),
        )
        logger.info(
            f"Parcel {final_width:.0f}x{final_height:.0f}x{final_depth:.1f} cm, "
            f"{total_weight:.2f} kg physical, {packaging.shipping_weight:.2f} kg billed."
        )
        return packaging

    @staticmethod
    def calculate_item_weight(project: CartProject) -> float:
        """Weight of one copy in kg: width and height in cm, depth in mm, converted to m3."""
        depth_mm = project.depth or domain.DEFAULT_ITEM_DEPTH_MM
        volume = (project.width * project.height * depth_mm) / 10_000_000
        return volume * domain.ITEM_DENSITIES.get(project.product_type, domain.DEFAULT_DENSITY)

    @staticmethod
    def calculate_packaging_cost(requirements: PackagingRequirements, value: float) -> float:
        costs = domain.PACKAGING_COSTS
        cost = costs['base']

        if requirements.reinforcement == 'heavy':
            cost += costs['heavy']
        elif requirements.reinforcement == 'medium':
            cost += costs['medium']

        if requirements.fragile_stickers:
            cost += costs['fragile_stickers']
        if requirements.moisture_protection:
            cost += costs['moisture_protection']

        # Valuable parcels carry packaging insurance
        if value > domain.PACKAGING_INSURANCE_THRESHOLD:
            cost += value * domain.INSURANCE_RATE

        return cost
