# Seed Catalog Management Command
import random
from decimal import Decimal

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from faker import Faker

from store.models import Challenge, PickupLocation, Product, Seller, User
from store.pricing import selling_price_from_discount

CATEGORIES = {
    'Electronics': ['Mobiles', 'Headphones', 'Chargers', 'Smart Watches'],
    'Fashion': ['Kurtas', 'Sarees', 'Footwear', 'Bags'],
    'Home & Kitchen': ['Cookware', 'Storage', 'Decor', 'Bedsheets'],
    'Books': ['Fiction', 'Exam Prep', 'Comics'],
    'Groceries': ['Spices', 'Snacks', 'Tea & Coffee'],
}

CITIES = ['Mumbai', 'Pune', 'Delhi', 'Bengaluru', 'Hyderabad', 'Chennai']
DEFAULT_PASSWORD = 'password123'


class Command(BaseCommand):
    help = 'Populates the database with demo buyers, sellers, products and challenges.'

    def add_arguments(self, parser):
        parser.add_argument('--buyers', type=int, default=10, help='Number of buyer accounts to create.')
        parser.add_argument('--sellers', type=int, default=5, help='Number of seller accounts to create.')
        parser.add_argument(
            '--products-per-seller',
            type=int,
            default=8,
            help='Number of products listed by each seller.',
        )
        parser.add_argument('--challenges', type=int, default=5, help='Number of open challenges to create.')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible data.')

    def handle(self, *args, **options):
        for option in ('buyers', 'sellers', 'products_per_seller', 'challenges'):
            if options[option] < 0:
                raise CommandError(f'--{option.replace("_", "-")} cannot be negative.')

        self.fake = Faker('en_IN')
        if options['seed'] is not None:
            Faker.seed(options['seed'])
            random.seed(options['seed'])

        with transaction.atomic():
            buyers = self.create_buyers(options['buyers'])
            sellers = self.create_sellers(options['sellers'])
            products = self.create_products(sellers, options['products_per_seller'])
            challenges = self.create_challenges(buyers, options['challenges'])

        self.stdout.write(self.style.SUCCESS(
            f'Seeded {len(buyers)} buyers, {len(sellers)} sellers, '
            f'{len(products)} products and {len(challenges)} challenges. '
            f'Every account uses the password "{DEFAULT_PASSWORD}".'
        ))

    def unique_mobile(self):
        while True:
            mobile = f'{random.choice("6789")}{random.randint(0, 999999999):09d}'
            if not User.objects.filter(mobile=mobile).exists():
                return mobile

    def create_user(self):
        email = self.fake.unique.email().lower()
        return User.objects.create_user(
            username=email,
            email=email,
            password=DEFAULT_PASSWORD,
            name=self.fake.name(),
            mobile=self.unique_mobile(),
            preferred_delivery_option=random.choice(['dabbawala', 'metro', 'seller_pickup', 'rapido', 'uber']),
        )

    def create_buyers(self, count):
        self.stdout.write(f'Creating {count} buyers...')
        return [self.create_user() for _ in range(count)]

    def create_sellers(self, count):
        self.stdout.write(f'Creating {count} sellers...')
        sellers = []

        for _ in range(count):
            user = self.create_user()
            is_close_knit = random.random() < 0.3

            seller = Seller(
                user=user,
                business_name=self.fake.company(),
                is_close_knit=is_close_knit,
                gst_number='' if is_close_knit else self.fake_gst_number(),
                verification_status='approved',
                gst_verified=not is_close_knit,
            )
            seller.save()

            city = random.choice(CITIES)
            PickupLocation.objects.create(
                seller=seller,
                name=f'{seller.business_name} store',
                street=self.fake.street_address(),
                city=city,
                state=self.fake.state(),
                pincode=f'{random.randint(100000, 999999)}',
                timings='10:00-20:00',
            )
            sellers.append(seller)

        return sellers

    def fake_gst_number(self):
        letters = ''.join(random.choices('ABCDEFGHIJKLMNOPQRSTUVWXYZ', k=5))
        return (
            f'{random.randint(1, 37):02d}{letters}{random.randint(0, 9999):04d}'
            f'{random.choice("ABCDEFGHIJKLMNOPQRSTUVWXYZ")}{random.choice("123456789")}Z'
            f'{random.choice("0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ")}'
        )

    def create_products(self, sellers, per_seller):
        self.stdout.write(f'Creating {per_seller} products per seller...')
        products = []

        for seller in sellers:
            for _ in range(per_seller):
                category = random.choice(list(CATEGORIES))
                base_price = Decimal(random.randrange(199, 20000, 10))
                discount = Decimal(random.choice([0, 5, 10, 15, 20, 25, 30]))
                selling_price = selling_price_from_discount(base_price, discount)
                allow_bargaining = random.random() < 0.5

                product = Product.objects.create(
                    seller=seller,
                    name=self.fake.catch_phrase()[:200],
                    description=self.fake.paragraph(nb_sentences=4),
                    category=category,
                    subcategory=random.choice(CATEGORIES[category]),
                    brand=self.fake.company().split()[0],
                    tags=self.fake.words(nb=3),
                    specifications={'colour': self.fake.color_name(), 'warranty': f'{random.randint(0, 2)} years'},
                    competitive_prices={
                        'flipkart': str((selling_price * Decimal('1.05')).quantize(Decimal('1'))),
                        'amazon': str((selling_price * Decimal('1.08')).quantize(Decimal('1'))),
                    },
                    base_price=base_price,
                    selling_price=selling_price,
                    price_discount=discount,
                    allow_bargaining=allow_bargaining,
                    min_bargain_price=(selling_price * Decimal('0.8')).quantize(Decimal('0.01'))
                    if allow_bargaining else None,
                    stock=random.randint(0, 50),
                    is_verified=random.random() < 0.7,
                )
                products.append(product)

        return products

    def create_challenges(self, buyers, count):
        if not buyers:
            return []

        self.stdout.write(f'Creating {count} challenges...')
        challenges = []

        for _ in range(count):
            current_price = Decimal(random.randrange(499, 50000, 10))
            platform = random.choice(['flipkart', 'amazon', 'other'])
            challenges.append(Challenge.objects.create(
                user=random.choice(buyers),
                product_name=self.fake.catch_phrase()[:200],
                product_url=f'https://www.{platform if platform != "other" else "example"}.com/p/{self.fake.uuid4()}',
                platform=platform,
                current_price=current_price,
                challenge_price=(current_price * Decimal('0.85')).quantize(Decimal('0.01')),
                delivery_time=random.choice(['Same day', '2 days', 'Within a week']),
                city=random.choice(CITIES),
                category=random.choice(list(CATEGORIES)),
            ))

        return challenges
