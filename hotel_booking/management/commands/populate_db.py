from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from hotel_booking.models import Room, RoomType


ROOM_TYPES = [
    {
        'name': 'Standard',
        'base_price': Decimal('2500.00'),
        'features': {
            'workDesk': True,
            'freeWifi': True,
            'flatScreenTv': True,
            'coffeeMaker': True,
        },
    },
    {
        'name': 'Deluxe',
        'base_price': Decimal('4000.00'),
        'features': {
            'premiumBedding': True,
            'miniBar': True,
            'enhancedWifi': True,
            'luxuryBathroom': True,
            'privateBalcony': True,
            'roomService': True,
            'smartTv': True,
        },
    },
]

# (floor, room type, capacity); five rooms per floor numbered <floor>01<n>
FLOORS = [
    (1, 'Standard', 3),
    (2, 'Standard', 3),
    (3, 'Deluxe', 5),
]
ROOMS_PER_FLOOR = 5


class Command(BaseCommand):
    help = 'Populate database with the room types and rooms of the hotel'

    @transaction.atomic
    def handle(self, *args, **options):
        room_types = {}
        for data in ROOM_TYPES:
            room_type, created = RoomType.objects.update_or_create(
                name=data['name'],
                defaults={'base_price': data['base_price'], 'features': data['features']},
            )
            room_types[room_type.name] = room_type
            self.stdout.write(f"{'Created' if created else 'Updated'} room type: {room_type.name}")

        for floor, type_name, capacity in FLOORS:
            room_type = room_types[type_name]
            for i in range(1, ROOMS_PER_FLOOR + 1):
                room, created = Room.objects.get_or_create(
                    floor=floor,
                    room_number=f'{floor}01{i}',
                    defaults={
                        'price': room_type.base_price,
                        'capacity': capacity,
                        'available': True,
                        'room_type': room_type,
                    },
                )

                if created:
                    self.stdout.write(f'Created room: {room.room_number} - {room_type.name}')
                else:
                    self.stdout.write(f'Room {room.room_number} already exists')

        self.stdout.write(
            self.style.SUCCESS('Successfully populated database with sample data')
        )
